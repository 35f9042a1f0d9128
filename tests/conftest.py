"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import hashlib
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leaveledger.auth.schemas import Actor
from leaveledger.common.constants import UserRole
from leaveledger.config import settings
from leaveledger.database import Base, get_db
from leaveledger.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
from leaveledger.auth.models import AppUser, UserSession
from leaveledger.common.audit import AuditTrail  # noqa: F401
from leaveledger.core_hr.models import Employee, Organization
from leaveledger.leave.models import LeaveBalance, LeaveType

# ── SQLite compat: compile PG-specific types to TEXT/CHAR ───────────

from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

async def _seed_organization(db: AsyncSession, *, name: str = "Acme Builders") -> Organization:
    org = Organization(id=uuid.uuid4(), name=name, is_active=True)
    db.add(org)
    await db.flush()
    return org


async def _seed_user(
    db: AsyncSession,
    organization_id: uuid.UUID,
    *,
    role: UserRole = UserRole.employee,
    first_name: str = "Test",
    last_name: str = "User",
    with_employee: bool = True,
) -> tuple[AppUser, Optional[Employee]]:
    """Insert an app user and, by default, the employee record linked to it."""
    email = f"{first_name.lower()}.{uuid.uuid4().hex[:6]}@acme.test"
    user = AppUser(
        id=uuid.uuid4(),
        organization_id=organization_id,
        email=email,
        full_name=f"{first_name} {last_name}",
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.flush()

    employee = None
    if with_employee:
        employee = Employee(
            id=uuid.uuid4(),
            organization_id=organization_id,
            app_user_id=user.id,
            employee_code=f"EMP-{uuid.uuid4().hex[:6].upper()}",
            first_name=first_name,
            last_name=last_name,
            email=email,
            is_active=True,
        )
        db.add(employee)
        await db.flush()
    return user, employee


async def _seed_leave_type(
    db: AsyncSession,
    organization_id: uuid.UUID,
    *,
    code: str = "AL",
    name: str = "Annual Leave",
    max_days_per_year: Optional[Decimal] = Decimal("20"),
    is_active: bool = True,
) -> LeaveType:
    lt = LeaveType(
        id=uuid.uuid4(),
        organization_id=organization_id,
        code=code,
        name=name,
        max_days_per_year=max_days_per_year,
        is_paid=True,
        requires_approval=True,
        carry_forward=False,
        is_active=is_active,
    )
    db.add(lt)
    await db.flush()
    return lt


async def _seed_balance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    *,
    year: int = 2024,
    allocated: Decimal = Decimal("20"),
    carried_forward: Decimal = Decimal("0"),
    used: Decimal = Decimal("0"),
    pending: Decimal = Decimal("0"),
) -> LeaveBalance:
    bal = LeaveBalance(
        id=uuid.uuid4(),
        employee_id=employee_id,
        leave_type_id=leave_type_id,
        year=year,
        allocated_days=allocated,
        carried_forward_days=carried_forward,
        used_days=used,
        pending_days=pending,
        version=1,
    )
    db.add(bal)
    await db.flush()
    return bal


def _actor(user: AppUser, employee: Optional[Employee] = None) -> Actor:
    return Actor(
        user_id=user.id,
        organization_id=user.organization_id,
        role=user.role,
        employee_id=employee.id if employee else None,
    )


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    expired: bool = False,
    token_type: str = "access",
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


async def _auth_headers_for(db: AsyncSession, user_id: uuid.UUID) -> dict[str, str]:
    """Mint a token for *user_id* and persist the matching session."""
    token = create_access_token(user_id)
    db.add(
        UserSession(
            id=uuid.uuid4(),
            user_id=user_id,
            token_hash=hashlib.sha256(token.encode()).hexdigest(),
            expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
            is_revoked=False,
        )
    )
    await db.flush()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def test_org(db) -> Organization:
    return await _seed_organization(db)


@pytest.fixture
async def test_employee(db, test_org) -> tuple[AppUser, Employee]:
    """Employee-role user with a linked employee record."""
    return await _seed_user(db, test_org.id, first_name="Eve", last_name="Worker")


@pytest.fixture
async def auth_headers(db, test_employee) -> dict[str, str]:
    """Bearer headers for test_employee with a valid session persisted."""
    user, _ = test_employee
    headers = await _auth_headers_for(db, user.id)
    await db.commit()
    return headers
