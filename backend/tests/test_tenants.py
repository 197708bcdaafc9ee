"""
Tenant onboarding, settings, dashboard figures and operator delete.
"""
import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from conftest import add_vouchers
from ticketdesk.core.constants import DEFAULT_MODULES, TRIAL_PLAN
from ticketdesk.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ticketdesk.db.repositories.activity_log_repository import ActivityLogRepository
from ticketdesk.db.repositories.sale_repository import SaleRepository
from ticketdesk.db.repositories.tenant_repository import TenantRepository
from ticketdesk.db.repositories.user_repository import UserRepository
from ticketdesk.db.repositories.voucher_repository import VoucherRepository
from ticketdesk.services.inventory_service import InventoryService
from ticketdesk.services.subscription_service import is_license_active, remaining_days
from ticketdesk.services.tenant_service import TenantService


@pytest.mark.asyncio
class TestTenantLifecycle:

    @pytest.fixture
    def tenants(self, db_session, audit_logger):
        return TenantService(db_session, audit_logger)

    async def test_new_tenant_gets_trial(self, tenants, super_actor):
        before = datetime.utcnow()
        tenant = await tenants.create_tenant(super_actor, "  Wifi Matoto ")

        assert tenant.name == "Wifi Matoto"
        assert tenant.status == "active"
        assert tenant.plan_name == TRIAL_PLAN
        assert tenant.credits_balance == Decimal("5")
        assert tenant.subscription_end - tenant.subscription_start == timedelta(days=14)
        assert tenant.subscription_start >= before
        assert tenant.settings["currency"] == "GNF"
        assert tenant.settings["modules"] == DEFAULT_MODULES
        assert "WIFI MATOTO" in tenant.settings["receipt_header"]
        assert is_license_active(tenant)
        assert remaining_days(tenant) == 14

    async def test_blank_name_rejected(self, tenants, super_actor):
        with pytest.raises(ValidationError):
            await tenants.create_tenant(super_actor, "   ")

    async def test_only_operator_creates_tenants(self, tenants, admin_actor):
        with pytest.raises(AuthorizationError):
            await tenants.create_tenant(admin_actor, "Rogue Agency")

    async def test_list_is_role_scoped(self, tenants, tenant, other_tenant, admin_actor, super_actor):
        assert [t.id for t in await tenants.list_tenants(admin_actor)] == [tenant.id]

        all_ids = {t.id for t in await tenants.list_tenants(super_actor)}
        assert {tenant.id, other_tenant.id} <= all_ids

    async def test_get_other_tenant_forbidden(self, tenants, other_tenant, seller_actor):
        with pytest.raises(AuthorizationError):
            await tenants.get_tenant(seller_actor, other_tenant.id)

    async def test_get_unknown_tenant(self, tenants, super_actor):
        with pytest.raises(NotFoundError):
            await tenants.get_tenant(super_actor, "missing")

    async def test_admin_updates_settings(self, tenants, tenant, admin_actor):
        updated = await tenants.update_settings(
            admin_actor, tenant.id, name="Cyber Kaloum Centre",
            settings_patch={"currency": "XOF", "receipt_footer": "A bientot"},
        )

        assert updated.name == "Cyber Kaloum Centre"
        assert updated.settings["currency"] == "XOF"
        assert updated.settings["receipt_footer"] == "A bientot"
        assert updated.settings["modules"] == DEFAULT_MODULES

    async def test_admin_cannot_change_modules(self, tenants, tenant, admin_actor):
        with pytest.raises(AuthorizationError):
            await tenants.update_settings(admin_actor, tenant.id, settings_patch={"modules": {"tasks": True}})

    async def test_seller_cannot_change_settings(self, tenants, tenant, seller_actor):
        with pytest.raises(AuthorizationError):
            await tenants.update_settings(seller_actor, tenant.id, settings_patch={"currency": "EUR"})

    async def test_operator_changes_modules_through_settings(self, tenants, tenant, super_actor):
        updated = await tenants.update_settings(super_actor, tenant.id, settings_patch={"modules": {"tasks": False}})

        assert updated.settings["modules"]["tasks"] is False
        assert updated.settings["modules"]["sales"] is True

    @pytest.mark.parametrize("modules", [{"tasks": "false"}, {"tasks": 0}, {"marketing": False}, ["tasks"]])
    async def test_settings_reject_malformed_module_flags(self, tenants, db_session, tenant, super_actor, modules):
        with pytest.raises(ValidationError):
            await tenants.update_settings(super_actor, tenant.id, settings_patch={"modules": modules})

        stored = await TenantRepository(db_session).get(tenant.id)
        assert stored.settings["modules"]["tasks"] is True


@pytest.mark.asyncio
class TestTenantDeletion:

    async def test_delete_removes_tenant_data_but_keeps_logs(
        self, db_session, audit_logger, tenant, seller, seller_actor, super_actor,
    ):
        vouchers = await add_vouchers(db_session, tenant, 3)
        await InventoryService(db_session, audit_logger).sell(seller_actor, vouchers[0].id, tenant.id)
        await audit_logger.drain()

        await TenantService(db_session, audit_logger).delete_tenant(super_actor, tenant.id)
        await audit_logger.drain()

        assert await TenantRepository(db_session).get(tenant.id) is None
        assert await VoucherRepository(db_session).count_by_tenant(tenant.id) == 0
        assert await SaleRepository(db_session).get_by_tenant(tenant.id) == []
        assert await UserRepository(db_session).get(seller.id) is None

        actions = [log.action for log in await ActivityLogRepository(db_session).get_recent(tenant.id)]
        assert "SALE" in actions
        assert "AGENCY_DELETE" in actions

    async def test_operator_home_tenant_is_protected(self, db_session, audit_logger, super_actor):
        with pytest.raises(ConflictError):
            await TenantService(db_session, audit_logger).delete_tenant(super_actor, super_actor.tenant_id)

    async def test_admin_cannot_delete(self, db_session, audit_logger, tenant, admin_actor):
        with pytest.raises(AuthorizationError):
            await TenantService(db_session, audit_logger).delete_tenant(admin_actor, tenant.id)


@pytest.mark.asyncio
class TestDashboardStats:

    async def test_tenant_figures(self, db_session, audit_logger, tenant, other_tenant, admin, seller, seller_actor, admin_actor):
        vouchers = await add_vouchers(db_session, tenant, 4, price=1000)
        await add_vouchers(db_session, other_tenant, 2, price=9000, prefix="rt")
        inventory = InventoryService(db_session, audit_logger)
        await inventory.sell(seller_actor, vouchers[0].id, tenant.id)
        await inventory.sell(seller_actor, vouchers[1].id, tenant.id)

        stats = await TenantService(db_session, audit_logger).get_stats(admin_actor)

        assert stats.revenue == 2000
        assert stats.sold_count == 2
        assert stats.stock_count == 2
        assert stats.tenant_count == 1
        assert stats.user_count == 2
        assert stats.currency == "GNF"

    async def test_operator_sees_platform_totals(self, db_session, audit_logger, tenant, other_tenant, super_actor, admin, seller):
        await add_vouchers(db_session, tenant, 4)
        await add_vouchers(db_session, other_tenant, 2, prefix="rt")

        stats = await TenantService(db_session, audit_logger).get_stats(super_actor)

        assert stats.stock_count == 6
        assert stats.tenant_count == 3
        assert stats.user_count == 2

    async def test_seller_cannot_read_other_tenant_stats(self, db_session, audit_logger, other_tenant, seller_actor):
        with pytest.raises(AuthorizationError):
            await TenantService(db_session, audit_logger).get_stats(seller_actor, other_tenant.id)
