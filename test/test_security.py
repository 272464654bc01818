from datetime import timedelta

import pytest
from jose import JWTError, jwt

from hrms_server.core.hashing import get_password_hash, verify_password
from hrms_server.core.security import (
    ALGORITHM,
    SECRET_KEY,
    create_access_token,
    decode_access_token,
    generate_otp,
    is_admin,
    is_otp_expired,
    otp_expiry_time,
    otp_matches,
)
from hrms_server.models.model import Employee, utcnow


def test_security_token_creation():
    token = create_access_token({"sub": "EMP001", "role": "Manager"})

    token_data = decode_access_token(token)
    assert token_data.employee_id == "EMP001"
    assert token_data.role == "Manager"


def test_token_carries_expiry():
    token = create_access_token({"sub": "EMP001"}, expires_delta=timedelta(minutes=5))

    payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    assert payload["exp"] - payload["iat"] == 300


def test_expired_token_rejected():
    token = create_access_token({"sub": "EMP001"}, expires_delta=timedelta(seconds=-1))

    with pytest.raises(JWTError):
        decode_access_token(token)


def test_token_without_subject_rejected():
    token = create_access_token({"role": "CEO"})

    with pytest.raises(JWTError):
        decode_access_token(token)


def test_token_signed_with_other_key_rejected():
    token = jwt.encode({"sub": "EMP001"}, "another-secret", algorithm=ALGORITHM)

    with pytest.raises(JWTError):
        decode_access_token(token)


def test_security_password_hashing():
    hashed = get_password_hash("test_password")

    assert hashed != "test_password"
    assert verify_password("test_password", hashed)
    assert not verify_password("wrong_password", hashed)


def test_verify_password_with_bad_input():
    assert not verify_password("", get_password_hash("x"))
    assert not verify_password("x", "")
    assert not verify_password("x", "not-a-bcrypt-hash")


def test_password_hashed_on_assignment():
    employee = Employee(employee_id="EMP001", login_password="12345")

    assert employee.login_password != "12345"
    assert employee.check_password("12345")

    employee.login_password = "changed"
    assert employee.check_password("changed")
    assert not employee.check_password("12345")


def test_generate_otp():
    codes = {generate_otp() for _ in range(50)}

    for code in codes:
        assert len(code) == 6
        assert code.isdigit()
        assert code[0] != "0"
    assert len(codes) > 1


def test_generate_otp_custom_length():
    assert len(generate_otp(8)) == 8


def test_otp_expiry():
    employee = Employee(otp="123456", otp_expiry=otp_expiry_time())
    assert not is_otp_expired(employee)

    employee.otp_expiry = utcnow() - timedelta(seconds=1)
    assert is_otp_expired(employee)

    employee.otp_expiry = None
    assert is_otp_expired(employee)


def test_otp_matches():
    employee = Employee(otp="123456")

    assert otp_matches(employee, "123456")
    assert not otp_matches(employee, "654321")
    assert not otp_matches(employee, "")
    assert not otp_matches(employee, "१२३४५६")

    employee.clear_otp()
    assert not otp_matches(employee, "")
    assert employee.is_otp_verified is False


@pytest.mark.parametrize("role, expected", [
    ("HR-Admin", True),
    ("CEO", True),
    ("Super-Admin", True),
    ("Manager", False),
    ("Employee", False),
])
def test_is_admin(role, expected):
    assert is_admin(Employee(role=role)) is expected
