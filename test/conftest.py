import os

# Configuration must be in place before the application modules are imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_FILE"] = ""
os.environ["RETRY_DELAY"] = "0.01"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hrms_server.core.database import employee_repository, get_db, init_db
from hrms_server.core.email import get_email_service
from hrms_server.core.security import create_access_token
from hrms_server.main import app


class FakeEmailService:
    """Records messages instead of talking to an SMTP server"""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_template(self, to, template, context):
        if self.fail:
            return False
        self.sent.append({"to": to, "template": template, "context": context})
        return True

    async def verify_connection(self):
        return not self.fail


@pytest.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(create_db=False, bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
async def client(session_factory, email_service):
    """API client against a throwaway database"""
    async def override_get_db():
        session = session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: email_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_employee(session_factory):
    """Insert an employee straight into the database"""
    counter = {"n": 0}

    async def _make(**fields):
        counter["n"] += 1
        n = counter["n"]
        data = {
            "employee_id": f"EMP{n:03d}",
            "employee_name": f"Employee {n}",
            "email": f"employee{n}@example.com",
            "login_password": "secret123",
        }
        data.update(fields)
        async with session_factory() as session:
            employee = await employee_repository.create(session, data)
            await session.commit()
        return employee

    return _make


@pytest.fixture
def fetch_employee(session_factory):
    async def _fetch(employee_id):
        async with session_factory() as session:
            return await employee_repository.get_by_employee_id(session, employee_id)

    return _fetch


def auth_headers(employee):
    token = create_access_token({"sub": employee.employee_id, "role": employee.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
async def admin(make_employee):
    return await make_employee(
        employee_id="HR001",
        employee_name="Asha Admin",
        email="hr.admin@example.com",
        role="HR-Admin",
    )


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
