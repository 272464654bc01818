# hrms_server/schemas/schema.py
from datetime import date, datetime
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from hrms_server.models.model import LEAVE_TYPES

T = TypeVar("T")

_DATE_FIELDS = ("doj", "dor", "doc", "dob")


def _blank_date_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ShiftTime(BaseModel):
    """Shift start and end, free-form HH:MM strings"""
    start_at: str = Field("", examples=["09:00"])
    end_at: str = Field("", examples=["18:00"])


class LeaveBalance(BaseModel):
    """Leave counters, stored as numeric strings"""
    casual_leave: str = Field("0", pattern=r"^\d+$")
    medical_leave: str = Field("0", pattern=r"^\d+$")
    earned_leave: str = Field("0", pattern=r"^\d+$")
    paternity_leave: str = Field("0", pattern=r"^\d+$")
    maternity_leave: str = Field("0", pattern=r"^\d+$")
    comp_off_leave: str = Field("0", pattern=r"^\d+$")
    optional_leave: str = Field("0", pattern=r"^\d+$")
    bereavement_leave: str = Field("5", pattern=r"^\d+$")
    loss_of_pay_leave: str = Field("0", pattern=r"^\d+$")

    @field_validator("*", mode="before")
    @classmethod
    def coerce_numbers(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class EmployeeProfileFields(BaseModel):
    """Fields an employee may edit on their own record"""
    gender: Optional[str] = None
    contact_no: Optional[str] = None
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    residential_address: Optional[str] = None
    permanent_address: Optional[str] = None
    dob: Optional[date] = None
    place_of_birth: Optional[str] = None
    blood_group: Optional[str] = None
    aadhaar_number: Optional[str] = None
    pancard_no: Optional[str] = None
    employee_photo: Optional[str] = None
    marital_status: Optional[str] = None
    nationality: Optional[str] = None
    overall_experience: Optional[str] = None
    qualifications: Optional[str] = None
    emergency_contact: Optional[str] = None
    extension_no: Optional[str] = None


class EmployeeAdminFields(BaseModel):
    """Fields reserved for administrative roles"""
    employee_name: Optional[str] = None
    employee_code: Optional[str] = None
    department_id: Optional[str] = None
    designation: Optional[str] = None
    doj: Optional[date] = None
    dor: Optional[date] = None
    doc: Optional[date] = None
    employment_type: Optional[str] = None
    employee_status: Optional[str] = None
    account_status: Optional[str] = None
    employee_code_in_device: Optional[str] = None
    master_device_id: Optional[int] = None
    record_status: Optional[int] = None
    work_place: Optional[str] = None
    team: Optional[str] = None
    shift_time: Optional[ShiftTime] = None
    manager_id: Optional[str] = None
    team_lead_id: Optional[str] = None
    working_days: Optional[str] = None
    max_regularization: Optional[str] = None
    max_short_leave: Optional[str] = None
    role: Optional[str] = None
    is_probation: Optional[bool] = None
    is_notice: Optional[bool] = None
    is_working: Optional[bool] = None
    is_inhouse: Optional[bool] = None
    leave_balance: Optional[LeaveBalance] = None


ADMIN_ONLY_FIELDS = frozenset(EmployeeAdminFields.model_fields)


class EmployeeCreate(EmployeeProfileFields, EmployeeAdminFields):
    """Schema for hiring an employee"""
    model_config = ConfigDict(extra="ignore")

    employee_id: str = Field(..., min_length=1, description="Employee code", examples=["EMP001"])
    employee_name: str = Field(..., min_length=1, description="Employee name", examples=["John Doe"])
    email: EmailStr = Field(..., description="Employee email", examples=["john.doe@example.com"])
    login_password: Optional[str] = Field(None, min_length=1, description="Initial password")

    @field_validator(*_DATE_FIELDS, mode="before")
    @classmethod
    def blank_dates(cls, v):
        return _blank_date_to_none(v)


class EmployeeUpdate(EmployeeProfileFields, EmployeeAdminFields):
    """Schema for updating an employee; non-editable keys are dropped"""
    model_config = ConfigDict(extra="ignore")

    @field_validator(*_DATE_FIELDS, mode="before")
    @classmethod
    def blank_dates(cls, v):
        return _blank_date_to_none(v)


class EmployeeResponse(BaseModel):
    """Employee as returned by the API, without credentials"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: str
    employee_name: str
    employee_code: str
    email: str
    gender: str
    department_id: str
    designation: str
    doj: Optional[date] = None
    dor: Optional[date] = None
    doc: Optional[date] = None
    employment_type: str
    employee_status: str
    account_status: str
    employee_code_in_device: str
    master_device_id: int
    record_status: int
    work_place: str
    extension_no: str
    team: str
    shift_time: ShiftTime
    manager_id: str
    team_lead_id: str
    working_days: str
    max_regularization: str
    max_short_leave: str
    role: str
    is_probation: bool
    is_notice: bool
    is_working: bool
    is_inhouse: bool
    father_name: str
    mother_name: str
    residential_address: str
    permanent_address: str
    contact_no: str
    dob: Optional[date] = None
    place_of_birth: str
    blood_group: str
    aadhaar_number: str
    pancard_no: str
    employee_photo: str
    marital_status: str
    nationality: str
    overall_experience: str
    qualifications: str
    emergency_contact: str
    is_otp_verified: bool
    leave_balance: LeaveBalance
    created_at: datetime
    updated_at: datetime


class LeaveBalanceUpdate(BaseModel):
    """Schema for adjusting a single leave counter"""
    leave_type: str = Field(..., examples=["casual_leave"])
    days: int = Field(..., ge=0, examples=[2])
    operation: Literal["add", "subtract"] = "subtract"

    @field_validator("leave_type")
    @classmethod
    def known_leave_type(cls, v):
        if v not in LEAVE_TYPES:
            raise ValueError(f"Unknown leave type '{v}'")
        return v


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope"""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class PaginatedResponse(ApiResponse[List[EmployeeResponse]]):
    pagination: Pagination


class ErrorResponse(BaseModel):
    """Error envelope"""
    success: bool = False
    error: str


class EmployeeStats(BaseModel):
    total: int
    active: int
    terminated: int
    probation: int


class EmployeeCount(BaseModel):
    """Schema for employee count by group"""
    department: str = Field(..., description="Department id")
    count: int = Field(..., description="Number of employees")


# Authentication

class LoginRequest(BaseModel):
    identifier: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("identifier", "email", "employee_code", "employee_id"),
        description="Email or employee code",
    )
    password: str = Field(..., min_length=1)


class LoginData(BaseModel):
    employee: EmployeeResponse
    access_token: str
    token_type: str = "bearer"
    message: str = "Login successful"


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1)


class VerifyOtpRequest(BaseModel):
    identifier: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("identifier", "email", "employee_code", "employee_id"),
    )
    otp: str = Field(..., min_length=1)


class VerifyOtpData(BaseModel):
    employee: EmployeeResponse
    message: str = "OTP verified successfully"
    is_authenticated: bool = True


class ResetPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1)
    otp: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class DashboardResponse(BaseModel):
    view: str
    employee: Dict[str, Any]
    menu: List[Dict[str, str]]
    content: Dict[str, Any]
