# hrms_server/api/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hrms_server.core.config import settings
from hrms_server.core.database import employee_repository, get_db
from hrms_server.core.decorators import log_execution_time, log_requests, rate_limit
from hrms_server.core.email import EmailService, get_email_service
from hrms_server.core.security import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    AUTH_COOKIE,
    create_access_token,
    generate_otp,
    get_current_active_user,
    is_otp_expired,
    otp_expiry_time,
    otp_matches,
)
from hrms_server.models.model import Employee
from hrms_server.schemas.schema import (
    ApiResponse,
    EmployeeResponse,
    ForgotPasswordRequest,
    LoginData,
    LoginRequest,
    ResetPasswordRequest,
    VerifyOtpData,
    VerifyOtpRequest,
)

logger = logging.getLogger(__name__)

SESSION_COOKIES = (AUTH_COOKIE, "refreshToken", "sessionId")

router = APIRouter(
    tags=["authentication"],
    responses={401: {"description": "Unauthorized"}},
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post("/login", response_model=ApiResponse[LoginData])
@log_requests
@log_execution_time
@rate_limit(calls=10, period=60)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    employee = await employee_repository.get_by_identifier(db, credentials.identifier.strip())
    if not employee:
        raise _unauthorized("Invalid credentials")
    if not employee.is_active_account:
        raise _unauthorized("Account is not active")
    if not employee.is_working:
        raise _unauthorized("Employee is not currently working")
    if not employee.check_password(credentials.password):
        raise _unauthorized("Invalid credentials")

    access_token = create_access_token(data={"sub": employee.employee_id, "role": employee.role})
    response.set_cookie(
        key=AUTH_COOKIE,
        value=access_token,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite="lax",
    )
    logger.info(f"Employee {employee.employee_id} logged in")

    return ApiResponse(
        data=LoginData(employee=EmployeeResponse.model_validate(employee), access_token=access_token),
        message="Login successful",
    )


@router.post("/forgot-password", response_model=ApiResponse[None])
@log_requests
@log_execution_time
@rate_limit(calls=5, period=60)
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service)
):
    employee = await employee_repository.get_by_email(db, payload.email.strip())
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No account found with this email address"
        )
    if not employee.is_active_account:
        raise _unauthorized("Account is not active")

    try:
        otp = generate_otp()
        employee.otp = otp
        employee.otp_expiry = otp_expiry_time()
        employee.is_otp_verified = False
        await employee_repository.save(db, employee)

        sent = await email_service.send_template(
            employee.email,
            "forgot_password",
            {
                "employee_name": employee.employee_name,
                "otp": otp,
                "expires_minutes": settings.OTP_EXPIRE_MINUTES,
            },
        )
        if not sent:
            employee.clear_otp()
            await employee_repository.save(db, employee)
            await db.commit()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to send OTP email. Please try again."
            )

        logger.info(f"Password reset OTP issued for {employee.employee_id}")
        return ApiResponse(message="OTP sent to your email address")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Forgot password failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process password reset request"
        )


@router.post("/verify-otp", response_model=ApiResponse[VerifyOtpData])
@log_requests
@log_execution_time
@rate_limit(calls=10, period=60)
async def verify_otp(
    request: Request,
    payload: VerifyOtpRequest,
    db: AsyncSession = Depends(get_db)
):
    employee = await employee_repository.get_by_identifier(db, payload.identifier.strip())
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    if not employee.otp:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No OTP requested for this account"
        )

    if is_otp_expired(employee):
        employee.clear_otp()
        await employee_repository.save(db, employee)
        await db.commit()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="OTP has expired. Please request a new one."
        )

    if not otp_matches(employee, payload.otp.strip()):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OTP")

    # The code stays stored until reset-password consumes it
    employee.is_otp_verified = True
    await employee_repository.save(db, employee)

    return ApiResponse(
        data=VerifyOtpData(employee=EmployeeResponse.model_validate(employee)),
        message="OTP verified successfully",
    )


@router.post("/reset-password", response_model=ApiResponse[None])
@log_requests
@log_execution_time
@rate_limit(calls=5, period=60)
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    if len(payload.new_password) < settings.MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long"
        )

    employee = await employee_repository.get_by_email(db, payload.email.strip())
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    if not employee.is_active_account:
        raise _unauthorized("Account is not active")

    if not employee.is_otp_verified:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="OTP not verified. Please verify OTP first."
        )
    if is_otp_expired(employee):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="OTP has expired. Please request a new one."
        )
    if not otp_matches(employee, payload.otp.strip()):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OTP")

    employee.login_password = payload.new_password
    employee.clear_otp()
    await employee_repository.save(db, employee)
    logger.info(f"Password reset for {employee.employee_id}")

    return ApiResponse(message="Password reset successfully")


@router.post("/logout", response_model=ApiResponse[None])
@log_requests
async def logout(request: Request, response: Response):
    for cookie in SESSION_COOKIES:
        response.delete_cookie(cookie)
    return ApiResponse(message="Logged out successfully")


@router.get("/me", response_model=ApiResponse[EmployeeResponse])
@log_requests
@log_execution_time
async def read_current_employee(
    request: Request,
    current_user: Employee = Depends(get_current_active_user)
):
    """
    Get the authenticated employee
    """
    return ApiResponse(data=EmployeeResponse.model_validate(current_user))
