"""
Sign-in, PIN lock and team management.
"""
import pytest

from conftest import TEST_PASSWORD, create_user
from ticketdesk.core.constants import UserRole
from ticketdesk.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ticketdesk.core.security import verify_password
from ticketdesk.db.repositories.user_repository import UserRepository
from ticketdesk.services.user_service import UserService, is_valid_pin


class TestPinFormat:

    @pytest.mark.parametrize("pin,valid", [
        ("1234", True), ("0000", True), ("123", False), ("12345", False), ("12a4", False), ("", False), (None, False),
    ])
    def test_exactly_four_digits(self, pin, valid):
        assert is_valid_pin(pin) is valid


@pytest.mark.asyncio
class TestSignIn:

    @pytest.fixture
    def users(self, db_session, audit_logger):
        return UserService(db_session, audit_logger)

    async def test_sign_in_returns_profile(self, users, admin):
        user = await users.sign_in("Admin@Kaloum.io", TEST_PASSWORD)

        assert user is not None
        assert user.id == admin.id
        assert user.last_login is not None

    async def test_wrong_password(self, users, admin):
        assert await users.sign_in(admin.email, "wrong-password") is None

    async def test_unknown_email(self, users):
        assert await users.sign_in("ghost@kaloum.io", TEST_PASSWORD) is None

    async def test_disabled_account(self, users, db_session, admin):
        await UserRepository(db_session).update(admin.id, {"is_active": False})
        await db_session.commit()

        assert await users.sign_in(admin.email, TEST_PASSWORD) is None

    async def test_verify_pin(self, users, admin):
        assert await users.verify_pin(admin.id, "1234") is True
        assert await users.verify_pin(admin.id, "9999") is False
        assert await users.verify_pin(admin.id, "123") is False
        assert await users.verify_pin("unknown", "1234") is False

    async def test_user_without_pin(self, users, super_admin):
        assert await users.verify_pin(super_admin.id, "0000") is False

    async def test_set_own_pin(self, users, super_admin, super_actor):
        await users.set_pin(super_actor, "2468")
        assert await users.verify_pin(super_admin.id, "2468") is True

        with pytest.raises(ValidationError):
            await users.set_pin(super_actor, "24680")


@pytest.mark.asyncio
class TestTeamManagement:

    @pytest.fixture
    def users(self, db_session, audit_logger):
        return UserService(db_session, audit_logger)

    async def test_admin_adds_seller(self, users, tenant, admin_actor):
        user = await users.add_user(admin_actor, "New.Seller@Kaloum.io", "pass1234", UserRole.SELLER, tenant.id)

        assert user.email == "new.seller@kaloum.io"
        assert user.role == UserRole.SELLER.value
        assert user.tenant_id == tenant.id
        assert user.display_name == "new.seller"

    async def test_admin_cannot_add_admin(self, users, tenant, admin_actor):
        with pytest.raises(AuthorizationError):
            await users.add_user(admin_actor, "boss@kaloum.io", "pass1234", UserRole.ADMIN, tenant.id)

    async def test_admin_cannot_grant_super_admin(self, users, tenant, admin_actor):
        with pytest.raises(AuthorizationError):
            await users.add_user(admin_actor, "root@kaloum.io", "pass1234", UserRole.SUPER_ADMIN, tenant.id)

    async def test_admin_cannot_add_to_other_tenant(self, users, other_tenant, admin_actor):
        with pytest.raises(AuthorizationError):
            await users.add_user(admin_actor, "spy@ratoma.io", "pass1234", UserRole.SELLER, other_tenant.id)

    async def test_seller_cannot_add_users(self, users, tenant, seller_actor):
        with pytest.raises(AuthorizationError):
            await users.add_user(seller_actor, "friend@kaloum.io", "pass1234", UserRole.SELLER, tenant.id)

    async def test_duplicate_email(self, users, tenant, admin, admin_actor):
        with pytest.raises(ConflictError):
            await users.add_user(admin_actor, admin.email, "pass1234", UserRole.SELLER, tenant.id)

    async def test_short_password(self, users, tenant, admin_actor):
        with pytest.raises(ValidationError):
            await users.add_user(admin_actor, "weak@kaloum.io", "123", UserRole.SELLER, tenant.id)

    async def test_operator_adds_admin_anywhere(self, users, other_tenant, super_actor):
        user = await users.add_user(super_actor, "admin@ratoma.io", "pass1234", UserRole.ADMIN, other_tenant.id)
        assert user.role == UserRole.ADMIN.value

    async def test_operator_add_to_unknown_tenant(self, users, super_actor):
        with pytest.raises(NotFoundError):
            await users.add_user(super_actor, "lost@nowhere.io", "pass1234", UserRole.SELLER, "missing")

    async def test_list_hides_operators_from_admins(self, users, tenant, db_session, admin_actor, super_actor, seller):
        await create_user(db_session, tenant, UserRole.SUPER_ADMIN, "embedded-op@kaloum.io")

        visible = {u.email for u in await users.list_users(admin_actor)}
        assert "embedded-op@kaloum.io" not in visible
        assert seller.email in visible

        everyone = {u.email for u in await users.list_users(super_actor)}
        assert "embedded-op@kaloum.io" in everyone
        assert "operator@ticketdesk.io" in everyone

    async def test_seller_cannot_list_team(self, users, seller_actor):
        with pytest.raises(AuthorizationError):
            await users.list_users(seller_actor)

    async def test_admin_resets_seller_password(self, users, db_session, seller, admin_actor):
        await users.update_password(admin_actor, seller.id, "fresh-pass")

        refreshed = await UserRepository(db_session).get(seller.id)
        assert verify_password("fresh-pass", refreshed.hashed_password)

    async def test_admin_deletes_seller(self, users, db_session, seller, admin_actor):
        await users.delete_user(admin_actor, seller.id)
        assert await UserRepository(db_session).get(seller.id) is None

    async def test_operator_promotes_seller(self, users, seller, super_actor):
        updated = await users.update_role(super_actor, seller.id, UserRole.ADMIN)
        assert updated.role == UserRole.ADMIN.value

    async def test_admin_cannot_promote_seller(self, users, seller, admin_actor):
        with pytest.raises(AuthorizationError):
            await users.update_role(admin_actor, seller.id, UserRole.ADMIN)

    async def test_admin_cannot_touch_operator(self, users, super_admin, admin_actor):
        with pytest.raises(AuthorizationError):
            await users.delete_user(admin_actor, super_admin.id)

    async def test_unknown_target(self, users, super_actor):
        with pytest.raises(NotFoundError):
            await users.delete_user(super_actor, "missing")


@pytest.mark.asyncio
class TestSelfManagementForbidden:

    @pytest.fixture
    def users(self, db_session, audit_logger):
        return UserService(db_session, audit_logger)

    @pytest.fixture(params=["super", "admin", "seller"])
    def actor(self, request, super_actor, admin_actor, seller_actor):
        return {"super": super_actor, "admin": admin_actor, "seller": seller_actor}[request.param]

    async def test_cannot_delete_self(self, users, db_session, actor):
        with pytest.raises(AuthorizationError):
            await users.delete_user(actor, actor.id)
        assert await UserRepository(db_session).get(actor.id) is not None

    async def test_cannot_change_own_role(self, users, actor):
        with pytest.raises(AuthorizationError):
            await users.update_role(actor, actor.id, UserRole.SUPER_ADMIN)

    async def test_cannot_reset_own_password(self, users, actor):
        with pytest.raises(AuthorizationError):
            await users.update_password(actor, actor.id, "new-password")
