# hrms_server/core/database.py
import logging
import math
from datetime import date
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from sqlalchemy import func, inspect, or_, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.future import select

from hrms_server.core.config import settings
from hrms_server.models.model import Base, Employee, LEAVE_TYPES

logger = logging.getLogger(__name__)

T = TypeVar('T')

DATABASE_URL = settings.database_url

# Fields that are never written through the generic update path
NON_EDITABLE_FIELDS = frozenset({
    "id",
    "employee_id",
    "email",
    "login_password",
    "otp",
    "otp_expiry",
    "is_otp_verified",
    "created_at",
    "updated_at",
})

SORTABLE_FIELDS = ("created_at", "updated_at", "employee_name", "employee_id", "doj")

FILTERABLE_FIELDS = (
    "department_id",
    "employee_status",
    "employment_type",
    "is_working",
    "is_inhouse",
    "role",
)


def _engine_kwargs(url: str) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"echo": settings.SQL_ECHO, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        kwargs["pool_size"] = settings.DB_POOL_SIZE
        kwargs["max_overflow"] = settings.DB_MAX_OVERFLOW
    return kwargs


engine = create_async_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db():
    session = async_session()
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"DB session error: {str(e)}")
        raise
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


class Repository(Generic[T]):
    def __init__(self, model_class):
        self.model_class = model_class

    async def create(self, session: AsyncSession, obj_data: Dict[str, Any]) -> T:
        db_obj = self.model_class(**obj_data)
        session.add(db_obj)
        await session.flush()
        await session.refresh(db_obj)
        return db_obj

    async def get(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        return await session.get(self.model_class, id_value)

    async def save(self, session: AsyncSession, db_obj: T) -> T:
        session.add(db_obj)
        await session.flush()
        await session.refresh(db_obj)
        return db_obj

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        if filters:
            for key, value in filters.items():
                if hasattr(self.model_class, key) and value is not None:
                    query = query.filter(getattr(self.model_class, key) == value)
        return query

    async def get_all(
        self,
        session: AsyncSession,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[List[Any]] = None,
    ) -> List[T]:
        query = self._apply_filters(select(self.model_class), filters)
        if order_by:
            query = query.order_by(*order_by)
        query = query.offset(skip).limit(limit)
        result = await session.execute(query)
        return list(result.scalars().all())

    async def count(self, session: AsyncSession, filters: Optional[Dict[str, Any]] = None) -> int:
        query = self._apply_filters(select(func.count()).select_from(self.model_class), filters)
        result = await session.execute(query)
        return result.scalar() or 0


def _email_matches(email: str):
    return func.lower(Employee.email) == email.lower()


class EmployeeRepository(Repository[Employee]):
    def __init__(self):
        super().__init__(Employee)

    async def get_by_employee_id(self, session: AsyncSession, employee_id: str) -> Optional[Employee]:
        result = await session.execute(select(Employee).where(Employee.employee_id == employee_id))
        return result.scalars().first()

    async def get_by_email(self, session: AsyncSession, email: str) -> Optional[Employee]:
        result = await session.execute(select(Employee).where(_email_matches(email)))
        return result.scalars().first()

    async def get_by_identifier(self, session: AsyncSession, identifier: str) -> Optional[Employee]:
        """Match either the email (any case) or the employee code"""
        result = await session.execute(
            select(Employee).where(
                or_(_email_matches(identifier), Employee.employee_id == identifier)
            )
        )
        return result.scalars().first()

    async def exists(self, session: AsyncSession, employee_id: str, email: str) -> bool:
        result = await session.execute(
            select(func.count(Employee.id)).where(
                or_(Employee.employee_id == employee_id, _email_matches(email))
            )
        )
        return (result.scalar() or 0) > 0

    async def list_paginated(
        self,
        session: AsyncSession,
        filters: Dict[str, Any],
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[Employee], Dict[str, int]]:
        if sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Cannot sort by '{sort_by}'")

        filters = {k: v for k, v in filters.items() if k in FILTERABLE_FIELDS}
        column = getattr(Employee, sort_by)
        if sort_order == "desc":
            order_by = [column.desc(), Employee.id.desc()]
        else:
            order_by = [column.asc(), Employee.id.asc()]

        skip = (page - 1) * limit
        employees = await self.get_all(session, skip, limit, filters, order_by)
        total = await self.count(session, filters)

        return employees, {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        }

    async def update(self, session: AsyncSession, employee: Employee, obj_data: Dict[str, Any]) -> Employee:
        for key, value in obj_data.items():
            if key in NON_EDITABLE_FIELDS or not hasattr(Employee, key):
                continue
            setattr(employee, key, value)
        return await self.save(session, employee)

    async def terminate(self, session: AsyncSession, employee: Employee) -> Employee:
        employee.employee_status = "Terminated"
        employee.account_status = "Inactive"
        employee.is_working = False
        employee.dor = date.today()
        return await self.save(session, employee)

    def _active_query(self):
        return select(Employee).where(
            Employee.is_working.is_(True),
            Employee.account_status == "Active",
        )

    async def get_active_by(self, session: AsyncSession, field: str, value: str) -> List[Employee]:
        query = self._active_query().where(getattr(Employee, field) == value).order_by(Employee.employee_name)
        result = await session.execute(query)
        return list(result.scalars().all())

    async def search(self, session: AsyncSession, term: str, limit: int = 10) -> List[Employee]:
        query = (
            self._active_query()
            .where(
                or_(
                    Employee.employee_name.icontains(term, autoescape=True),
                    Employee.employee_id.icontains(term, autoescape=True),
                    Employee.employee_code.icontains(term, autoescape=True),
                )
            )
            .order_by(Employee.employee_name)
            .limit(limit)
        )
        result = await session.execute(query)
        return list(result.scalars().all())

    async def statistics(self, session: AsyncSession) -> Dict[str, int]:
        active = {"is_working": True, "account_status": "Active"}
        return {
            "total": await self.count(session),
            "active": await self.count(session, active),
            "terminated": await self.count(session, {"employee_status": "Terminated"}),
            "probation": await self.count(session, {**active, "is_probation": True}),
        }

    async def adjust_leave_balance(
        self,
        session: AsyncSession,
        employee: Employee,
        leave_type: str,
        days: int,
        operation: str = "subtract",
    ) -> Dict[str, str]:
        if leave_type not in LEAVE_TYPES:
            raise ValueError(f"Unknown leave type '{leave_type}'")

        balance = dict(employee.leave_balance or {})
        try:
            current = int(balance.get(leave_type) or 0)
        except ValueError:
            current = 0

        if operation == "add":
            new_balance = current + days
        else:
            new_balance = max(0, current - days)

        balance[leave_type] = str(new_balance)
        # JSON columns only persist on reassignment
        employee.leave_balance = balance
        await self.save(session, employee)
        return employee.leave_balance


async def create_database():
    if DATABASE_URL.startswith("sqlite"):
        return

    temp_engine = create_async_engine(
        f"mysql+aiomysql://{settings.DB_USER}:{settings.DB_PASSWORD}@{settings.DB_HOST}:{settings.DB_PORT}",
        echo=False
    )

    try:
        async with temp_engine.begin() as conn:
            result = await conn.execute(text(f"SHOW DATABASES LIKE '{settings.DB_NAME}'"))
            database_exists = result.scalar() is not None

            if not database_exists:
                await conn.execute(text(f"CREATE DATABASE {settings.DB_NAME}"))
                logger.info(f"Database '{settings.DB_NAME}' created")
            else:
                logger.info(f"Database '{settings.DB_NAME}' already exists")
    finally:
        await temp_engine.dispose()


async def init_db(create_db=True, bind=None):
    bind = bind or engine
    try:
        if create_db and bind is engine:
            await create_database()

        async with bind.begin() as conn:
            existing_tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )

            if 'employees' not in existing_tables:
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Tables created successfully")
            else:
                logger.info("Tables already exist")
    except Exception as e:
        logger.error(f"Database initialization error: {str(e)}")
        raise

    logger.info("Database ready")


async def close_db():
    await engine.dispose()
    logger.info("Database connections closed")


async def ping(session: AsyncSession) -> bool:
    result = await session.execute(text("SELECT 1"))
    return result.scalar() == 1


employee_repository = EmployeeRepository()


async def get_employee_count_by_department(session: AsyncSession) -> List[Dict[str, Any]]:
    count = func.count(Employee.id).label("count")
    query = (
        select(Employee.department_id, count)
        .group_by(Employee.department_id)
        .order_by(count.desc(), Employee.department_id)
    )

    result = await session.execute(query)
    return [{"department": dept, "count": count} for dept, count in result.all()]


def get_database_url():
    return settings.sync_database_url
