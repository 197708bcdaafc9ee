# scripts/seed-data.py
"""Seed database with a demo operator, agency, admin and seller"""
import asyncio
import sys
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from ticketdesk.core.audit_log import AuditLogger
from ticketdesk.core.constants import DEFAULT_MODULES, UNLIMITED_PLAN, TaskPriority, UserRole
from ticketdesk.core.rbac import Actor
from ticketdesk.core.security import get_password_hash
from ticketdesk.db.database import async_session_local, init_db, close_db
from ticketdesk.db.repositories.tenant_repository import TenantRepository
from ticketdesk.db.repositories.user_repository import UserRepository
from ticketdesk.services.inventory_service import InventoryService
from ticketdesk.services.plan_service import PlanService
from ticketdesk.services.task_service import TaskService
from ticketdesk.services.tenant_service import TenantService
from ticketdesk.services.user_service import UserService

OPERATOR_EMAIL = "operator@ticketdesk.io"
DEMO_PASSWORD = "Demo123!"


async def seed_data():
    """Seed database with demo data"""
    await init_db()
    audit = AuditLogger(async_session_local)

    async with async_session_local() as session:
        tenant_repo = TenantRepository(session)
        user_repo = UserRepository(session)

        if await user_repo.get_by_email(OPERATOR_EMAIL):
            print("Database already seeded")
            return

        # Operator home tenant
        now = datetime.utcnow()
        home = await tenant_repo.create({
            "name": "TicketDesk Operations",
            "plan_name": UNLIMITED_PLAN,
            "subscription_start": now,
            "subscription_end": now + timedelta(days=3650),
            "credits_balance": Decimal("0"),
            "settings": {"currency": "GNF", "modules": dict(DEFAULT_MODULES)},
        })
        operator = await user_repo.create({
            "email": OPERATOR_EMAIL,
            "hashed_password": get_password_hash(DEMO_PASSWORD),
            "display_name": "Operator",
            "tenant_id": home.id,
            "role": UserRole.SUPER_ADMIN.value,
        })
        await session.commit()
        print(f"Created operator: {operator.email}")

        actor = Actor.from_user(operator)
        tenant = await TenantService(session, audit).create_tenant(actor, "Demo Cyber")
        print(f"Created tenant: {tenant.name} ({tenant.credits_balance} credits)")

        users = UserService(session, audit)
        admin = await users.add_user(
            actor, "admin@democyber.io", DEMO_PASSWORD, UserRole.ADMIN, tenant.id,
            display_name="Demo Admin", pin="1234",
        )
        seller = await users.add_user(
            actor, "seller@democyber.io", DEMO_PASSWORD, UserRole.SELLER, tenant.id,
            display_name="Demo Seller", pin="0000",
        )
        print(f"Created users: {admin.email}, {seller.email}")

        plans = PlanService(session, audit)
        for index, (name, months, price) in enumerate([("Mensuel", 1, 50000), ("Trimestriel", 3, 135000), ("Annuel", 12, 480000)]):
            await plans.upsert_plan(actor, {
                "name": name, "months": months, "price": price, "currency": "GNF",
                "features": ["Tickets illimités", "Support WhatsApp"],
                "is_popular": months == 3, "order_index": index,
            })

        result = await InventoryService(session, audit).bulk_import(
            Actor.from_user(admin),
            tenant.id,
            [
                {"username": f"demo{i:03d}", "password": f"{i:04d}", "profile": "1 Jour", "time_limit": "1d", "price": 1000}
                for i in range(20)
            ],
        )
        print(f"Imported {result.inserted_count} vouchers for {result.cost} credits")

        task = await TaskService(session, audit).add_task(
            Actor.from_user(admin),
            title="Vérifier le stock de tickets",
            priority=TaskPriority.HIGH,
            assigned_to=seller.id,
        )
        print(f"Created task: {task.title}")

    await audit.drain()
    await close_db()

    print("\nLogin credentials:")
    print(f"Operator: {OPERATOR_EMAIL} / {DEMO_PASSWORD}")
    print(f"Admin: admin@democyber.io / {DEMO_PASSWORD}")
    print(f"Seller: seller@democyber.io / {DEMO_PASSWORD}")


if __name__ == "__main__":
    asyncio.run(seed_data())
