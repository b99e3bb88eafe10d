import os
from datetime import date
from typing import AsyncGenerator, Dict, Optional
from uuid import UUID

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hrms.auth.models import Role, User
from hrms.auth.security import create_access_token, hash_password
from hrms.core.models import Employee, LeaveBalance, LeaveType
from hrms.db.session import Base, get_db
from hrms.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "StrongPass123"

EMPLOYEE_PERMISSIONS = {"leave": {"read": True, "create": True}}
MANAGER_PERMISSIONS = {
    "leave": {"read": True, "create": True, "approve": True, "view_all": True},
    "employees": {"read": True},
}
HR_PERMISSIONS = {
    "leave": {
        "read": True,
        "create": True,
        "approve": True,
        "edit": True,
        "view_all": True,
        "manage_types": True,
        "manage_balances": True,
    },
    "employees": {"read": True, "create": True},
}


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test; StaticPool keeps the single connection alive."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app; each request gets its own session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ----- data helpers -----
async def create_employee(
    db: AsyncSession,
    code: str,
    first_name: str,
    last_name: str = "Doe",
    department: Optional[str] = None,
) -> Employee:
    employee = Employee(employee_code=code, first_name=first_name, last_name=last_name, department=department)
    db.add(employee)
    await db.commit()
    return employee


async def create_leave_type(
    db: AsyncSession,
    name: str = "Casual Leave",
    days_allowed: int = 12,
    carry_forward: bool = False,
) -> LeaveType:
    leave_type = LeaveType(name=name, days_allowed=days_allowed, carry_forward=carry_forward)
    db.add(leave_type)
    await db.commit()
    return leave_type


async def create_balance(
    db: AsyncSession,
    employee_id: UUID,
    leave_type_id: UUID,
    year: int,
    allocated_days: int,
    used_days: int = 0,
) -> LeaveBalance:
    balance = LeaveBalance(
        employee_id=employee_id,
        leave_type_id=leave_type_id,
        year=year,
        allocated_days=allocated_days,
        used_days=used_days,
    )
    db.add(balance)
    await db.commit()
    return balance


async def create_user(
    db: AsyncSession,
    email: str,
    role: str,
    employee_id: Optional[UUID] = None,
    status: str = "ACTIVE",
) -> User:
    user = User(
        full_name=email.split("@")[0].title(),
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        employee_id=employee_id,
        status=status,
    )
    db.add(user)
    await db.commit()
    return user


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(subject={"sub": str(user.id), "user_id": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


async def read_balance(db: AsyncSession, balance_id: UUID) -> LeaveBalance:
    """Re-read a balance, bypassing anything cached in the session."""
    db.expire_all()
    balance = await db.get(LeaveBalance, balance_id)
    assert balance is not None
    return balance


# ----- common fixtures -----
@pytest.fixture()
async def roles(db_session: AsyncSession) -> None:
    db_session.add_all(
        [
            Role(name="EMPLOYEE", permissions=EMPLOYEE_PERMISSIONS),
            Role(name="MANAGER", permissions=MANAGER_PERMISSIONS),
            Role(name="HR", permissions=HR_PERMISSIONS),
        ]
    )
    await db_session.commit()


@pytest.fixture()
async def alice(db_session: AsyncSession) -> Employee:
    return await create_employee(db_session, "EMP-001", "Alice", "Smith", department="Engineering")


@pytest.fixture()
async def bob(db_session: AsyncSession) -> Employee:
    return await create_employee(db_session, "EMP-002", "Bob", "Jones", department="Sales")


@pytest.fixture()
async def casual(db_session: AsyncSession) -> LeaveType:
    return await create_leave_type(db_session, "Casual Leave", days_allowed=12)


@pytest.fixture()
async def alice_user(db_session: AsyncSession, roles: None, alice: Employee) -> User:
    return await create_user(db_session, "alice@example.com", "EMPLOYEE", employee_id=alice.id)


@pytest.fixture()
async def manager_user(db_session: AsyncSession, roles: None, bob: Employee) -> User:
    return await create_user(db_session, "bob@example.com", "MANAGER", employee_id=bob.id)


@pytest.fixture()
async def hr_user(db_session: AsyncSession, roles: None) -> User:
    return await create_user(db_session, "hr@example.com", "HR")


@pytest.fixture()
def next_week() -> date:
    return date.fromordinal(date.today().toordinal() + 7)
