# hrms_server/core/security.py
import secrets
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from hrms_server.core.config import settings
from hrms_server.core.database import employee_repository, get_db
from hrms_server.models.model import Employee, utcnow

# Security configuration
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

AUTH_COOKIE = "authToken"

# OAuth2 password bearer token scheme; the cookie is checked when no header is sent
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/employees/auth/login", auto_error=False)


class Role(str, Enum):
    """Roles carried on the employee record"""
    EMPLOYEE = "Employee"
    MANAGER = "Manager"
    HR_ADMIN = "HR-Admin"
    CEO = "CEO"
    SUPER_ADMIN = "Super-Admin"


ADMIN_ROLES = frozenset({Role.HR_ADMIN.value, Role.CEO.value, Role.SUPER_ADMIN.value})


class TokenData(BaseModel):
    """Token data schema"""
    employee_id: Optional[str] = None
    role: Optional[str] = None


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "iat": now})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> TokenData:
    payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    employee_id = payload.get("sub")
    if employee_id is None:
        raise JWTError("Token has no subject")
    return TokenData(employee_id=employee_id, role=payload.get("role"))


def generate_otp(length: Optional[int] = None) -> str:
    """Numeric passcode without a leading zero"""
    length = length or settings.OTP_LENGTH
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def otp_expiry_time(minutes: Optional[int] = None) -> datetime:
    return utcnow() + timedelta(minutes=minutes or settings.OTP_EXPIRE_MINUTES)


def is_otp_expired(employee: Employee) -> bool:
    return employee.otp_expiry is None or employee.otp_expiry <= utcnow()


def otp_matches(employee: Employee, candidate: str) -> bool:
    if not employee.otp or not candidate:
        return False
    # compare_digest only accepts ASCII str, so compare the encoded bytes
    return secrets.compare_digest(employee.otp.encode("utf-8"), candidate.encode("utf-8"))


def is_admin(employee: Employee) -> bool:
    return employee.role in ADMIN_ROLES


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Employee:
    """Get current employee from the bearer token or the auth cookie"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = token or request.cookies.get(AUTH_COOKIE)
    if not token:
        raise credentials_exception

    try:
        token_data = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    employee = await employee_repository.get_by_employee_id(db, token_data.employee_id)
    if employee is None:
        raise credentials_exception
    return employee


async def get_current_active_user(current_user: Employee = Depends(get_current_user)) -> Employee:
    """Get current employee, rejecting inactive or departed accounts"""
    if not current_user.is_active_account or not current_user.is_working:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is not active")
    return current_user


async def get_current_admin(current_user: Employee = Depends(get_current_active_user)) -> Employee:
    if not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrative role required",
        )
    return current_user
