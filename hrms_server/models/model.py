# hrms_server/models/model.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, JSON, String
from sqlalchemy.orm import declarative_base, validates

from hrms_server.core.hashing import get_password_hash, verify_password

Base = declarative_base()

LEAVE_TYPES = (
    "casual_leave",
    "medical_leave",
    "earned_leave",
    "paternity_leave",
    "maternity_leave",
    "comp_off_leave",
    "optional_leave",
    "bereavement_leave",
    "loss_of_pay_leave",
)

DEFAULT_LEAVE_BALANCE = {leave_type: "0" for leave_type in LEAVE_TYPES}
DEFAULT_LEAVE_BALANCE["bereavement_leave"] = "5"


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def default_leave_balance() -> dict:
    return dict(DEFAULT_LEAVE_BALANCE)


def default_shift_time() -> dict:
    return {"start_at": "", "end_at": ""}


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    employee_id = Column(String(50), nullable=False, unique=True, index=True)
    employee_name = Column(String(150), nullable=False)
    employee_code = Column(String(50), nullable=False, default="")
    email = Column(String(150), nullable=False, unique=True, index=True)
    gender = Column(String(20), nullable=False, default="")
    department_id = Column(String(50), nullable=False, default="0", index=True)
    designation = Column(String(100), nullable=False, default="")

    # Employment
    doj = Column(Date, nullable=True)
    dor = Column(Date, nullable=True)
    doc = Column(Date, nullable=True)
    employment_type = Column(String(30), nullable=False, default="Permanent")
    employee_status = Column(String(30), nullable=False, default="Working", index=True)
    account_status = Column(String(20), nullable=False, default="Active")
    employee_code_in_device = Column(String(50), nullable=False, default="NA")
    master_device_id = Column(Integer, nullable=False, default=0)
    record_status = Column(Integer, nullable=False, default=1)
    work_place = Column(String(100), nullable=False, default="")
    extension_no = Column(String(20), nullable=False, default="")
    team = Column(String(100), nullable=False, default="")
    shift_time = Column(JSON, nullable=False, default=default_shift_time)
    manager_id = Column(String(50), nullable=False, default="", index=True)
    team_lead_id = Column(String(50), nullable=False, default="", index=True)
    working_days = Column(String(5), nullable=False, default="5")
    max_regularization = Column(String(5), nullable=False, default="2")
    max_short_leave = Column(String(5), nullable=False, default="1")
    role = Column(String(30), nullable=False, default="Employee")
    is_probation = Column(Boolean, nullable=False, default=False)
    is_notice = Column(Boolean, nullable=False, default=False)
    is_working = Column(Boolean, nullable=False, default=True)
    is_inhouse = Column(Boolean, nullable=False, default=True)

    # Personal
    father_name = Column(String(150), nullable=False, default="")
    mother_name = Column(String(150), nullable=False, default="")
    residential_address = Column(String(500), nullable=False, default="")
    permanent_address = Column(String(500), nullable=False, default="")
    contact_no = Column(String(30), nullable=False, default="")
    dob = Column(Date, nullable=True)
    place_of_birth = Column(String(100), nullable=False, default="")
    blood_group = Column(String(10), nullable=False, default="")
    aadhaar_number = Column(String(20), nullable=False, default="")
    pancard_no = Column(String(20), nullable=False, default="")
    employee_photo = Column(String(500), nullable=False, default="")
    marital_status = Column(String(20), nullable=False, default="")
    nationality = Column(String(50), nullable=False, default="")
    overall_experience = Column(String(50), nullable=False, default="")
    qualifications = Column(String(500), nullable=False, default="")
    emergency_contact = Column(String(100), nullable=False, default="")

    # Authentication
    login_password = Column(String(255), nullable=False)
    otp = Column(String(10), nullable=False, default="")
    otp_expiry = Column(DateTime, nullable=True)
    is_otp_verified = Column(Boolean, nullable=False, default=False)

    leave_balance = Column(JSON, nullable=False, default=default_leave_balance)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @validates("login_password")
    def _hash_login_password(self, key, value):
        # Every assignment is a new plain-text password
        return get_password_hash(value)

    def check_password(self, candidate: str) -> bool:
        return verify_password(candidate, self.login_password)

    @property
    def is_active_account(self) -> bool:
        return self.account_status == "Active"

    def clear_otp(self):
        self.otp = ""
        self.otp_expiry = None
        self.is_otp_verified = False

    def __repr__(self):
        return f"<Employee(id={self.id}, employee_id='{self.employee_id}', name='{self.employee_name}')>"
