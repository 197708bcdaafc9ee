"""
License window arithmetic, tenant status and module access.
"""
import pytest
from datetime import datetime, timedelta
from types import SimpleNamespace

from ticketdesk.core.constants import ModuleKey, TenantStatus, UserRole
from ticketdesk.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ticketdesk.core.rbac import Actor
from ticketdesk.db.repositories.plan_repository import PlanRepository
from ticketdesk.db.repositories.tenant_repository import TenantRepository
from ticketdesk.services.plan_service import PlanService
from ticketdesk.services.subscription_service import (
    SubscriptionService, can_access, compute_subscription_end, is_license_active, remaining_days,
    validate_module_flags,
)

NOW = datetime(2026, 3, 1, 12, 0, 0)
SELLER = Actor(id="u1", role=UserRole.SELLER, tenant_id="t1")
OPERATOR = Actor(id="op", role=UserRole.SUPER_ADMIN, tenant_id="ops")


def make_tenant(status="active", modules=None, end=None):
    settings = {} if modules is None else {"modules": modules}
    return SimpleNamespace(status=status, settings=settings, subscription_end=end)


class TestLicenseWindow:

    def test_month_is_thirty_days(self):
        assert compute_subscription_end(NOW, 1) == NOW + timedelta(days=30)
        assert compute_subscription_end(NOW, 12) == NOW + timedelta(days=360)

    def test_license_active_until_end(self):
        tenant = make_tenant(end=NOW + timedelta(seconds=1))
        assert is_license_active(tenant, now=NOW)
        assert not is_license_active(tenant, now=NOW + timedelta(seconds=1))

    def test_no_end_means_no_license(self):
        assert not is_license_active(make_tenant(end=None), now=NOW)
        assert remaining_days(make_tenant(end=None), now=NOW) == 0

    def test_remaining_days_rounds_up_and_floors_at_zero(self):
        assert remaining_days(make_tenant(end=NOW + timedelta(days=2, hours=1)), now=NOW) == 3
        assert remaining_days(make_tenant(end=NOW - timedelta(days=5)), now=NOW) == 0

    def test_expired_license_independent_of_status(self):
        expired_active = make_tenant(status="active", end=NOW - timedelta(days=1))
        switched_off = make_tenant(status="inactive", end=NOW + timedelta(days=30))

        assert not is_license_active(expired_active, now=NOW)
        assert expired_active.status == TenantStatus.ACTIVE.value
        assert is_license_active(switched_off, now=NOW)
        assert switched_off.status == TenantStatus.INACTIVE.value


class TestModuleAccess:

    def test_missing_key_allows(self):
        tenant = make_tenant(modules={"dashboard": True, "sales": True})
        assert can_access(SELLER, tenant, ModuleKey.TASKS)

    def test_missing_modules_map_allows(self):
        assert can_access(SELLER, make_tenant(), ModuleKey.TEAM)

    def test_explicit_false_denies(self):
        tenant = make_tenant(modules={"tasks": False})
        assert not can_access(SELLER, tenant, ModuleKey.TASKS)
        assert can_access(SELLER, tenant, ModuleKey.SALES)

    def test_super_admin_bypasses(self):
        tenant = make_tenant(status="inactive", modules={"tasks": False})
        assert can_access(OPERATOR, tenant, ModuleKey.TASKS)

    def test_inactive_tenant_denies_everything(self):
        tenant = make_tenant(status="inactive", modules={"sales": True})
        assert not can_access(SELLER, tenant, ModuleKey.SALES)

    def test_expired_license_does_not_gate_modules(self):
        tenant = make_tenant(end=NOW - timedelta(days=10))
        assert can_access(SELLER, tenant, ModuleKey.SALES)

    def test_module_flags_must_be_booleans(self):
        assert validate_module_flags({"tasks": False, "sales": True}) == {"tasks": False, "sales": True}
        with pytest.raises(ValidationError):
            validate_module_flags({"tasks": None})
        with pytest.raises(ValidationError):
            validate_module_flags({"tasks": "false"})


@pytest.mark.asyncio
class TestSubscriptionService:

    @pytest.fixture
    def subscriptions(self, db_session, audit_logger):
        return SubscriptionService(db_session, audit_logger)

    async def test_activate_sets_window(self, subscriptions, tenant, super_actor):
        before = datetime.utcnow()
        updated = await subscriptions.activate(super_actor, tenant.id, "Trimestriel", 3)

        assert updated.plan_name == "Trimestriel"
        assert updated.subscription_start >= before
        assert updated.subscription_end - updated.subscription_start == timedelta(days=90)
        assert is_license_active(updated)

    async def test_activate_requires_positive_months(self, subscriptions, tenant, super_actor):
        with pytest.raises(ValidationError):
            await subscriptions.activate(super_actor, tenant.id, "Mensuel", 0)

    async def test_activate_unknown_tenant(self, subscriptions, super_actor):
        with pytest.raises(NotFoundError):
            await subscriptions.activate(super_actor, "nope", "Mensuel", 1)

    async def test_tenant_admin_cannot_manage_license(self, subscriptions, tenant, admin_actor):
        with pytest.raises(AuthorizationError):
            await subscriptions.activate(admin_actor, tenant.id, "Annuel", 12)
        with pytest.raises(AuthorizationError):
            await subscriptions.set_status(admin_actor, tenant.id, TenantStatus.INACTIVE)
        with pytest.raises(AuthorizationError):
            await subscriptions.set_modules(admin_actor, tenant.id, {"team": False})

    async def test_renew_extends_from_current_end(self, subscriptions, db_session, tenant, super_actor):
        future_end = datetime.utcnow() + timedelta(days=10)
        await TenantRepository(db_session).update(tenant.id, {"subscription_end": future_end})
        await db_session.commit()

        updated = await subscriptions.renew(super_actor, tenant.id, 30)

        assert updated.subscription_end == future_end + timedelta(days=30)

    async def test_renew_expired_license_starts_from_now(self, subscriptions, db_session, tenant, super_actor):
        await TenantRepository(db_session).update(
            tenant.id, {"subscription_end": datetime.utcnow() - timedelta(days=100)}
        )
        await db_session.commit()

        before = datetime.utcnow()
        updated = await subscriptions.renew(super_actor, tenant.id, 7)

        assert updated.subscription_end >= before + timedelta(days=7)
        assert remaining_days(updated) == 7

    async def test_set_status_inactive(self, subscriptions, tenant, super_actor, seller_actor):
        updated = await subscriptions.set_status(super_actor, tenant.id, "inactive")

        assert updated.status == "inactive"
        assert is_license_active(updated)
        assert not can_access(seller_actor, updated, ModuleKey.SALES)

    async def test_set_status_rejects_unknown(self, subscriptions, tenant, super_actor):
        with pytest.raises(ValidationError):
            await subscriptions.set_status(super_actor, tenant.id, "paused")

    async def test_set_modules_merges_flags(self, subscriptions, tenant, super_actor, seller_actor):
        updated = await subscriptions.set_modules(super_actor, tenant.id, {"tasks": False})
        updated = await subscriptions.set_modules(super_actor, tenant.id, {"team": False})

        modules = updated.settings["modules"]
        assert modules["tasks"] is False
        assert modules["team"] is False
        assert modules["sales"] is True
        assert not can_access(seller_actor, updated, ModuleKey.TASKS)

    async def test_set_modules_rejects_unknown_key(self, subscriptions, tenant, super_actor):
        with pytest.raises(ValidationError):
            await subscriptions.set_modules(super_actor, tenant.id, {"marketing": True})

    async def test_set_modules_rejects_non_boolean_flag(self, subscriptions, tenant, super_actor):
        with pytest.raises(ValidationError):
            await subscriptions.set_modules(super_actor, tenant.id, {"tasks": "false"})

    async def test_plan_rename_does_not_touch_subscribers(self, subscriptions, db_session, audit_logger, tenant, super_actor):
        plans = PlanService(db_session, audit_logger)
        plan = await plans.upsert_plan(super_actor, {"name": "Mensuel", "months": 1, "price": 50000})
        await subscriptions.activate(super_actor, tenant.id, plan.name, plan.months)

        await plans.upsert_plan(super_actor, {"name": "Mensuel Plus"}, plan_id=plan.id)
        await plans.delete_plan(super_actor, plan.id)

        refreshed = await TenantRepository(db_session).get(tenant.id)
        assert refreshed.plan_name == "Mensuel"
        assert await PlanRepository(db_session).list_ordered() == []
