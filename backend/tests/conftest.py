"""
Pytest configuration and fixtures
Shared test setup for all test modules
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from typing import AsyncGenerator, List
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.main import app
from ticketdesk.api.dependencies import get_audit_logger
from ticketdesk.core.audit_log import AuditLogger
from ticketdesk.core.constants import TRIAL_PLAN, UNLIMITED_PLAN, UserRole, VoucherStatus
from ticketdesk.core.rbac import Actor
from ticketdesk.core.security import create_access_token, get_password_hash
from ticketdesk.db import models  # noqa: F401
from ticketdesk.db.base import Base
from ticketdesk.db.database import build_engine, build_session_factory, get_db
from ticketdesk.db.models import Tenant, User, Voucher
from ticketdesk.services.tenant_service import default_settings

TEST_PASSWORD = "Secret123!"


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite per test so concurrent sessions really contend"""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ticketdesk-test.db'}")

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def audit_logger(session_factory) -> AsyncGenerator[AuditLogger, None]:
    audit = AuditLogger(session_factory, retry_delay=0)
    yield audit
    await audit.drain()


async def create_tenant(
    session: AsyncSession,
    name: str = "Cyber Kaloum",
    balance: str = "5",
    plan_name: str = TRIAL_PLAN,
    **overrides,
) -> Tenant:
    now = datetime.utcnow()
    values = {
        "name": name,
        "status": "active",
        "plan_name": plan_name,
        "subscription_start": now,
        "subscription_end": now + timedelta(days=14),
        "credits_balance": Decimal(balance),
        "settings": default_settings(name),
    }
    values.update(overrides)
    tenant = Tenant(**values)
    session.add(tenant)
    await session.commit()
    return tenant


async def create_user(session: AsyncSession, tenant: Tenant, role: UserRole, email: str, pin: str = None) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(TEST_PASSWORD),
        hashed_pin=get_password_hash(pin) if pin else None,
        display_name=email.split("@")[0],
        tenant_id=tenant.id,
        role=role.value,
    )
    session.add(user)
    await session.commit()
    return user


async def add_vouchers(
    session: AsyncSession,
    tenant: Tenant,
    count: int,
    profile: str = "1 Jour",
    price: int = 1000,
    prefix: str = "wifi",
) -> List[Voucher]:
    """Stock vouchers directly, without metering"""
    vouchers = [
        Voucher(
            tenant_id=tenant.id,
            username=f"{prefix}{i:03d}",
            password=f"pw{i:03d}",
            profile=profile,
            time_limit="1d",
            price=price,
            status=VoucherStatus.UNSOLD.value,
        )
        for i in range(count)
    ]
    session.add_all(vouchers)
    await session.commit()
    return vouchers


@pytest.fixture
async def operator_tenant(db_session: AsyncSession) -> Tenant:
    return await create_tenant(db_session, name="TicketDesk Operations", balance="0", plan_name=UNLIMITED_PLAN)


@pytest.fixture
async def tenant(db_session: AsyncSession) -> Tenant:
    return await create_tenant(db_session)


@pytest.fixture
async def other_tenant(db_session: AsyncSession) -> Tenant:
    return await create_tenant(db_session, name="Wifi Ratoma")


@pytest.fixture
async def super_admin(db_session: AsyncSession, operator_tenant: Tenant) -> User:
    return await create_user(db_session, operator_tenant, UserRole.SUPER_ADMIN, "operator@ticketdesk.io")


@pytest.fixture
async def admin(db_session: AsyncSession, tenant: Tenant) -> User:
    return await create_user(db_session, tenant, UserRole.ADMIN, "admin@kaloum.io", pin="1234")


@pytest.fixture
async def seller(db_session: AsyncSession, tenant: Tenant) -> User:
    return await create_user(db_session, tenant, UserRole.SELLER, "seller@kaloum.io", pin="4321")


@pytest.fixture
def super_actor(super_admin: User) -> Actor:
    return Actor.from_user(super_admin)


@pytest.fixture
def admin_actor(admin: User) -> Actor:
    return Actor.from_user(admin)


@pytest.fixture
def seller_actor(seller: User) -> Actor:
    return Actor.from_user(seller)


def auth_headers_for(user: User) -> dict:
    """Generate auth headers for a user"""
    access_token = create_access_token({
        "sub": user.id,
        "tenant_id": user.tenant_id,
        "role": user.role,
    })
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
async def client(session_factory, audit_logger) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with database and audit sink bound to the test database"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_logger] = lambda: audit_logger

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
