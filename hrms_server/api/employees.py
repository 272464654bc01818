# hrms_server/api/employees.py
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrms_server.core.config import settings
from hrms_server.core.database import employee_repository, get_db, get_employee_count_by_department
from hrms_server.core.decorators import log_execution_time, log_requests, rate_limit
from hrms_server.core.security import get_current_active_user, get_current_admin, is_admin
from hrms_server.models.model import Employee
from hrms_server.schemas.schema import (
    ADMIN_ONLY_FIELDS,
    ApiResponse,
    EmployeeCount,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeStats,
    EmployeeUpdate,
    LeaveBalance,
    LeaveBalanceUpdate,
    PaginatedResponse,
    Pagination,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/employees",
    tags=["employees"],
    responses={404: {"description": "Not found"}},
)

# Columns that may be cleared with an explicit null
NULLABLE_FIELDS = frozenset({"doj", "dor", "doc", "dob"})


def _to_response(employee: Employee) -> EmployeeResponse:
    return EmployeeResponse.model_validate(employee)


async def _get_or_404(db: AsyncSession, employee_pk: int) -> Employee:
    employee = await employee_repository.get(db, employee_pk)
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found"
        )
    return employee


@router.get("/", response_model=PaginatedResponse)
@log_requests
@log_execution_time
@rate_limit(calls=1000, period=60)
async def list_employees(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    department: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    employment_type: Optional[str] = None,
    is_working: Optional[bool] = None,
    is_inhouse: Optional[bool] = None,
    role: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_active_user)
):
    filters = {
        "department_id": department,
        "employee_status": status_filter,
        "employment_type": employment_type,
        "is_working": is_working,
        "is_inhouse": is_inhouse,
        "role": role,
    }

    try:
        employees, pagination = await employee_repository.list_paginated(
            db, filters, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
        )
        return PaginatedResponse(
            data=[_to_response(employee) for employee in employees],
            pagination=Pagination(**pagination),
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Employee retrieval failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch employees"
        )


@router.post("/", response_model=ApiResponse[EmployeeResponse], status_code=status.HTTP_201_CREATED)
@log_requests
@log_execution_time
@rate_limit(calls=100, period=60)
async def create_employee(
    request: Request,
    employee: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_admin)
):
    try:
        if await employee_repository.exists(db, employee.employee_id, employee.email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Employee with this ID or email already exists"
            )

        employee_data = employee.model_dump(exclude_none=True)
        employee_data.setdefault("login_password", settings.DEFAULT_LOGIN_PASSWORD)

        new_employee = await employee_repository.create(db, employee_data)
        logger.info(f"Employee {new_employee.employee_id} created by {current_user.employee_id}")

        return ApiResponse(data=_to_response(new_employee), message="Employee created successfully")
    except HTTPException:
        raise
    except IntegrityError as e:
        # A concurrent hire took the same code or email after the exists() check
        logger.warning(f"Duplicate employee {employee.employee_id} rejected on insert: {str(e.orig)}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Employee with this ID or email already exists"
        )
    except Exception as e:
        logger.error(f"Error in create_employee: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create employee"
        )


@router.get("/search", response_model=ApiResponse[List[EmployeeResponse]])
@log_requests
@log_execution_time
@rate_limit(calls=1000, period=60)
async def search_employees(
    request: Request,
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_active_user)
):
    try:
        employees = await employee_repository.search(db, q.strip(), limit)
        return ApiResponse(data=[_to_response(employee) for employee in employees])
    except Exception as e:
        logger.error(f"Employee search failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search employees"
        )


@router.get("/stats", response_model=ApiResponse[EmployeeStats])
@log_requests
@log_execution_time
@rate_limit(calls=50, period=60)
async def get_employee_stats(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_active_user)
):
    try:
        stats = await employee_repository.statistics(db)
        return ApiResponse(data=EmployeeStats(**stats))
    except Exception as e:
        logger.error(f"Employee stats failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve employee statistics"
        )


@router.get("/stats/department", response_model=ApiResponse[List[EmployeeCount]])
@log_requests
@log_execution_time
@rate_limit(calls=50, period=60)
async def get_employee_count_by_department_endpoint(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_active_user)
):
    try:
        department_counts = await get_employee_count_by_department(db)
        return ApiResponse(data=[EmployeeCount(**count) for count in department_counts])
    except Exception as e:
        logger.error(f"Department stats failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve department statistics"
        )


async def _active_by(db: AsyncSession, field: str, value: str) -> ApiResponse:
    try:
        employees = await employee_repository.get_active_by(db, field, value)
        return ApiResponse(data=[_to_response(employee) for employee in employees])
    except Exception as e:
        logger.error(f"Lookup by {field} failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch employees"
        )


@router.get("/by-department/{department_id}", response_model=ApiResponse[List[EmployeeResponse]])
@log_requests
@log_execution_time
async def get_employees_by_department(
    request: Request,
    department_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_active_user)
):
    return await _active_by(db, "department_id", department_id)


@router.get("/by-manager/{manager_id}", response_model=ApiResponse[List[EmployeeResponse]])
@log_requests
@log_execution_time
async def get_employees_by_manager(
    request: Request,
    manager_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_active_user)
):
    return await _active_by(db, "manager_id", manager_id)


@router.get("/by-team-lead/{team_lead_id}", response_model=ApiResponse[List[EmployeeResponse]])
@log_requests
@log_execution_time
async def get_employees_by_team_lead(
    request: Request,
    team_lead_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_active_user)
):
    return await _active_by(db, "team_lead_id", team_lead_id)


@router.get("/code/{employee_id}", response_model=ApiResponse[EmployeeResponse])
@log_requests
@log_execution_time
@rate_limit(calls=2000, period=60)
async def get_employee_by_code(
    request: Request,
    employee_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_active_user)
):
    employee = await employee_repository.get_by_employee_id(db, employee_id)
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee {employee_id} not found"
        )
    return ApiResponse(data=_to_response(employee))


@router.get("/{employee_pk}", response_model=ApiResponse[EmployeeResponse])
@log_requests
@log_execution_time
@rate_limit(calls=2000, period=60)
async def get_employee(
    request: Request,
    employee_pk: int,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_active_user)
):
    try:
        employee = await _get_or_404(db, employee_pk)
        return ApiResponse(data=_to_response(employee))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Employee lookup failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch employee"
        )


def _update_payload(employee: Employee, changes: EmployeeUpdate) -> Dict[str, Any]:
    data = changes.model_dump(exclude_unset=True)
    data = {k: v for k, v in data.items() if v is not None or k in NULLABLE_FIELDS}

    if "leave_balance" in data:
        # Keys not named in the request keep their stored value
        submitted = changes.leave_balance.model_dump(exclude_unset=True)
        data["leave_balance"] = {**(employee.leave_balance or {}), **submitted}
    if "shift_time" in data:
        submitted = changes.shift_time.model_dump(exclude_unset=True)
        data["shift_time"] = {**(employee.shift_time or {}), **submitted}
    return data


@router.put("/{employee_pk}", response_model=ApiResponse[EmployeeResponse])
@log_requests
@log_execution_time
@rate_limit(calls=100, period=60)
async def update_employee(
    request: Request,
    employee_pk: int,
    changes: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_active_user)
):
    try:
        employee = await _get_or_404(db, employee_pk)
        employee_data = _update_payload(employee, changes)

        if not employee_data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No fields to update"
            )

        if not is_admin(current_user):
            if employee.id != current_user.id:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Not allowed to update another employee"
                )
            restricted = sorted(ADMIN_ONLY_FIELDS.intersection(employee_data))
            if restricted:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Administrative role required to change: {', '.join(restricted)}"
                )

        updated_employee = await employee_repository.update(db, employee, employee_data)
        return ApiResponse(data=_to_response(updated_employee), message="Employee updated successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Employee update failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update employee"
        )


@router.delete("/{employee_pk}", response_model=ApiResponse[EmployeeResponse])
@log_requests
@log_execution_time
@rate_limit(calls=50, period=60)
async def terminate_employee(
    request: Request,
    employee_pk: int,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_admin)
):
    try:
        employee = await _get_or_404(db, employee_pk)
        terminated = await employee_repository.terminate(db, employee)
        logger.info(f"Employee {terminated.employee_id} terminated by {current_user.employee_id}")
        return ApiResponse(data=_to_response(terminated), message="Employee terminated successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Employee termination failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to terminate employee"
        )


@router.patch("/{employee_pk}/leave-balance", response_model=ApiResponse[LeaveBalance])
@log_requests
@log_execution_time
@rate_limit(calls=100, period=60)
async def update_leave_balance(
    request: Request,
    employee_pk: int,
    adjustment: LeaveBalanceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Employee = Depends(get_current_admin)
):
    try:
        employee = await _get_or_404(db, employee_pk)
        balance = await employee_repository.adjust_leave_balance(
            db, employee, adjustment.leave_type, adjustment.days, adjustment.operation
        )
        return ApiResponse(data=LeaveBalance(**balance), message="Leave balance updated successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Leave balance update failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update leave balance"
        )
