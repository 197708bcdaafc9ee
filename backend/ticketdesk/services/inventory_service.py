# backend/ticketdesk/services/inventory_service.py
"""
Voucher Inventory Engine

Lifecycle: UNSOLD -> SOLD via `sell` (exactly once per voucher, enforced by
a conditional update), SOLD -> UNSOLD via `cancel`, and hard delete only
while UNSOLD. Imports are metered through the credit engine.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ticketdesk.core.audit_log import AuditAction, AuditLogger
from ticketdesk.core.constants import (
    DEFAULT_PROFILE, DEFAULT_TIME_LIMIT, PaymentMethod, VoucherStatus,
)
from ticketdesk.core.exceptions import (
    BackendUnavailableError,
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
    degrade_to_empty,
    rollback_quietly,
    surface_store_failures,
)
from ticketdesk.core.rbac import Action, Actor, authorize
from ticketdesk.db.database import end_unchanged
from ticketdesk.db.models.sale import Sale
from ticketdesk.db.models.voucher import Voucher
from ticketdesk.db.repositories.sale_repository import SaleRepository
from ticketdesk.db.repositories.tenant_repository import TenantRepository
from ticketdesk.db.repositories.voucher_repository import VoucherRepository
from ticketdesk.services.credit_service import (
    CreditService, can_afford, compute_import_cost, is_unlimited, round_credits,
)

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    inserted_count: int
    skipped_count: int
    cost: Decimal
    balance: Decimal


@dataclass
class ProfileStock:
    profile: str
    unsold_count: int
    price: int


def parse_price(value: Any) -> int:
    """Prices are non-negative whole amounts in the tenant currency"""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"Invalid price: {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"Price must be a whole amount: {value!r}")
        value = int(value)
    try:
        price = int(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"Invalid price: {value!r}") from exc
    if price < 0:
        raise ValidationError(f"Price cannot be negative: {price}")
    return price


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Trim usernames, drop rows without one and fill defaults"""
    normalized = []
    for row in rows:
        username = str(row.get("username") or "").strip()
        if not username:
            continue
        normalized.append({
            "username": username,
            "password": str(row.get("password") or "").strip(),
            "profile": str(row.get("profile") or "").strip() or DEFAULT_PROFILE,
            "time_limit": str(row.get("time_limit") or "").strip() or DEFAULT_TIME_LIMIT,
            "price": parse_price(row.get("price")),
        })
    return normalized


class InventoryService:
    """Tenant-scoped voucher stock, sales and metered imports"""

    def __init__(self, session: AsyncSession, audit: AuditLogger):
        self.session = session
        self.audit = audit
        self.vouchers = VoucherRepository(session)
        self.sales = SaleRepository(session)
        self.tenants = TenantRepository(session)
        self.credits = CreditService(session, audit)

    # ------------------------------------------------------------------ sales

    @surface_store_failures
    async def sell(
        self,
        actor: Actor,
        voucher_id: str,
        tenant_id: str,
        customer_phone: Optional[str] = None,
        payment_method: PaymentMethod = PaymentMethod.CASH,
    ) -> Optional[Sale]:
        """
        Claim one voucher and record its Sale.

        Returns None when the voucher is no longer UNSOLD (another seller won
        the race, or it does not exist); the caller should try a different
        candidate. The claim and the Sale insert share one transaction, so a
        failed insert rolls the voucher back to UNSOLD before the error
        surfaces.
        """
        authorize(actor, Action.VOUCHER_SELL, tenant_id)
        payment_method = PaymentMethod(payment_method)
        sold_at = datetime.utcnow()

        claimed = await self.vouchers.claim_unsold(voucher_id, tenant_id, actor.id, sold_at)
        if not claimed:
            await end_unchanged(self.session)
            logger.warning(
                f"Voucher {voucher_id} not available for sale, already claimed or missing",
                extra={"tenant_id": tenant_id, "user_id": actor.id},
            )
            return None

        try:
            voucher = await self.vouchers.get(voucher_id)
            sale = await self.sales.create({
                "voucher_id": voucher.id,
                "tenant_id": tenant_id,
                "seller_id": actor.id,
                "seller_name": actor.display_name,
                "voucher_username": voucher.username,
                "voucher_profile": voucher.profile,
                "voucher_time_limit": voucher.time_limit,
                "amount": voucher.price,
                "sold_at": sold_at,
                "payment_method": payment_method.value,
                "customer_phone": (customer_phone or "").strip() or None,
            })
            await self.session.commit()
        except SQLAlchemyError as exc:
            await rollback_quietly(self.session)
            logger.error(
                f"Recording sale for voucher {voucher_id} failed, claim reverted: {exc}",
                extra={"tenant_id": tenant_id, "user_id": actor.id},
            )
            raise BackendUnavailableError("Sale could not be recorded", voucher_id=voucher_id) from exc

        logger.info(
            f"Voucher sold: voucher={voucher_id}, sale={sale.id}, amount={sale.amount}",
            extra={"tenant_id": tenant_id, "user_id": actor.id},
        )
        self.audit.record(
            actor, AuditAction.SALE,
            f"Sold {sale.voucher_username} ({sale.voucher_profile}) for {sale.amount}",
            tenant_id=tenant_id,
        )
        return sale

    @surface_store_failures
    async def cancel(self, actor: Actor, sale_id: str) -> None:
        """Delete the Sale and put its voucher back in stock, atomically"""
        authorize(actor, Action.SALE_CANCEL)
        sale = await self.sales.get(sale_id)
        if not sale:
            raise NotFoundError("Sale", sale_id)
        authorize(actor, Action.SALE_CANCEL, sale.tenant_id)

        await self.vouchers.release(sale.voucher_id)
        await self.sales.delete(sale.id)
        await self.session.commit()

        logger.info(
            f"Sale cancelled: sale={sale_id}, voucher={sale.voucher_id}",
            extra={"tenant_id": sale.tenant_id, "user_id": actor.id},
        )
        self.audit.record(
            actor, AuditAction.SALE_CANCEL,
            f"Cancelled sale of {sale.voucher_username} ({sale.amount})",
            tenant_id=sale.tenant_id,
        )

    @degrade_to_empty
    async def list_sales(
        self,
        actor: Actor,
        tenant_id: Optional[str] = None,
        seller_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 500,
    ) -> List[Sale]:
        """Sale history, newest first. Only a super admin may omit tenant_id."""
        if tenant_id is None and not actor.is_super_admin:
            tenant_id = actor.tenant_id
        authorize(actor, Action.SALE_VIEW, tenant_id)
        return await self.sales.get_by_tenant(tenant_id, seller_id=seller_id, skip=skip, limit=limit)

    # ---------------------------------------------------------------- imports

    @surface_store_failures
    async def bulk_import(self, actor: Actor, tenant_id: str, rows: Iterable[Mapping[str, Any]]) -> ImportResult:
        """
        Insert a batch of vouchers, then charge for it in the same
        transaction. Nothing is charged if the insert fails, and nothing is
        inserted if the charge is refused.
        """
        authorize(actor, Action.VOUCHER_IMPORT, tenant_id)
        tenant = await self.tenants.get(tenant_id)
        if not tenant:
            raise NotFoundError("Tenant", tenant_id)

        normalized = normalize_rows(rows)
        if not normalized:
            raise ValidationError("No valid rows to import")

        existing = await self.vouchers.existing_usernames(tenant_id, {r["username"] for r in normalized})
        accepted = []
        seen = set(existing)
        for row in normalized:
            if row["username"] in seen:
                continue
            seen.add(row["username"])
            accepted.append(row)

        skipped = len(normalized) - len(accepted)
        if not accepted:
            raise ValidationError("Every row duplicates an existing voucher", skipped_count=skipped)

        cost = compute_import_cost(len(accepted))
        if not can_afford(tenant, cost):
            raise InsufficientBalanceError(cost, round_credits(tenant.credits_balance or 0))

        try:
            await self.vouchers.add_batch([
                Voucher(
                    tenant_id=tenant_id,
                    status=VoucherStatus.UNSOLD.value,
                    created_by=actor.id,
                    **row,
                )
                for row in accepted
            ])
        except IntegrityError as exc:
            await rollback_quietly(self.session)
            logger.warning(f"Voucher batch for tenant {tenant_id} collided with a concurrent import: {exc}")
            raise ConflictError("Some usernames were imported concurrently; retry the import") from exc
        except SQLAlchemyError:
            await rollback_quietly(self.session)
            logger.error(f"Voucher batch insert failed for tenant {tenant_id}, nothing charged")
            raise

        charged = await self.credits.deduct(tenant, cost)
        if not charged:
            # Balance moved under us between the check and the charge
            await self.session.rollback()
            tenant = await self.tenants.get(tenant_id)
            raise InsufficientBalanceError(cost, round_credits(tenant.credits_balance or 0))

        await self.session.commit()
        tenant = await self.tenants.get(tenant_id)
        balance = round_credits(tenant.credits_balance or 0)

        logger.info(
            f"Vouchers imported: tenant={tenant_id}, inserted={len(accepted)}, skipped={skipped}, "
            f"cost={cost}, unlimited={is_unlimited(tenant)}",
            extra={"tenant_id": tenant_id, "user_id": actor.id},
        )
        self.audit.record(
            actor, AuditAction.TICKET_IMPORT,
            f"Imported {len(accepted)} tickets, {skipped} skipped, cost {cost} credits",
            tenant_id=tenant_id,
        )
        return ImportResult(
            inserted_count=len(accepted),
            skipped_count=skipped,
            cost=cost,
            balance=balance,
        )

    # ---------------------------------------------------------------- catalog

    @surface_store_failures
    async def update_price_by_profile(self, actor: Actor, tenant_id: str, profile: str, new_price: Any) -> int:
        """Reprice unsold stock of a profile. Sold vouchers keep their price."""
        authorize(actor, Action.VOUCHER_REPRICE, tenant_id)
        price = parse_price(new_price)

        updated = await self.vouchers.update_unsold_price_by_profile(tenant_id, profile, price)
        await self.session.commit()

        logger.info(f"Profile repriced: tenant={tenant_id}, profile={profile}, price={price}, count={updated}")
        self.audit.record(
            actor, AuditAction.TICKET_UPDATE,
            f"Profile {profile} set to {price} ({updated} tickets)",
            tenant_id=tenant_id,
        )
        return updated

    @surface_store_failures
    async def reprice_voucher(self, actor: Actor, tenant_id: str, voucher_id: str, new_price: Any) -> Voucher:
        authorize(actor, Action.VOUCHER_REPRICE, tenant_id)
        price = parse_price(new_price)

        voucher = await self.vouchers.get_with_tenant_check(voucher_id, tenant_id)
        if not voucher:
            raise NotFoundError("Voucher", voucher_id)

        updated = await self.vouchers.update_unsold_price(voucher_id, tenant_id, price)
        if not updated:
            await end_unchanged(self.session)
            raise ConflictError("Only unsold vouchers can be repriced", voucher_id=voucher_id)
        await self.session.commit()

        self.audit.record(
            actor, AuditAction.TICKET_UPDATE,
            f"Ticket {voucher.username} set to {price}",
            tenant_id=tenant_id,
        )
        return await self.vouchers.get(voucher_id)

    @surface_store_failures
    async def delete_one(self, actor: Actor, tenant_id: str, voucher_id: str) -> None:
        """Hard-delete one unsold voucher; a sold one must be cancelled first"""
        authorize(actor, Action.VOUCHER_DELETE, tenant_id)
        voucher = await self.vouchers.get_with_tenant_check(voucher_id, tenant_id)
        if not voucher:
            raise NotFoundError("Voucher", voucher_id)

        deleted = await self.vouchers.delete_unsold(voucher_id, tenant_id)
        if not deleted:
            await end_unchanged(self.session)
            raise ConflictError("Sold vouchers cannot be deleted; cancel the sale instead", voucher_id=voucher_id)
        await self.session.commit()

        logger.info(f"Voucher deleted: tenant={tenant_id}, voucher={voucher_id}")
        self.audit.record(actor, AuditAction.TICKET_DELETE, f"Deleted ticket {voucher.username}", tenant_id=tenant_id)

    @surface_store_failures
    async def purge_by_profile(self, actor: Actor, tenant_id: str, profile: str) -> int:
        """Delete every unsold voucher of a profile. Sold vouchers are never touched."""
        authorize(actor, Action.VOUCHER_DELETE, tenant_id)
        deleted = await self.vouchers.delete_unsold_by_profile(tenant_id, profile)
        await self.session.commit()

        logger.info(f"Profile purged: tenant={tenant_id}, profile={profile}, count={deleted}")
        self.audit.record(
            actor, AuditAction.TICKET_PURGE,
            f"Purged {deleted} unsold tickets of profile {profile}",
            tenant_id=tenant_id,
        )
        return deleted

    # ------------------------------------------------------------------ reads

    @degrade_to_empty
    async def list_vouchers(
        self,
        actor: Actor,
        tenant_id: str,
        status: Optional[VoucherStatus] = None,
        profile: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Voucher]:
        authorize(actor, Action.VOUCHER_VIEW, tenant_id)
        return await self.vouchers.get_by_tenant(tenant_id, status=status, profile=profile, skip=skip, limit=limit)

    @degrade_to_empty
    async def stock_by_profile(self, actor: Actor, tenant_id: str) -> List[ProfileStock]:
        authorize(actor, Action.VOUCHER_VIEW, tenant_id)
        rows = await self.vouchers.stock_by_profile(tenant_id)
        return [ProfileStock(profile=p, unsold_count=c, price=price or 0) for p, c, price in rows]

    @surface_store_failures
    async def sale_candidates(self, actor: Actor, tenant_id: str, profile: str, limit: int) -> List[str]:
        """Ids of unsold vouchers of a profile, oldest first"""
        authorize(actor, Action.VOUCHER_SELL, tenant_id)
        return await self.vouchers.unsold_ids_for_profile(tenant_id, profile, limit)


async def get_inventory_service(session: AsyncSession, audit: AuditLogger) -> InventoryService:
    """Dependency for FastAPI to inject inventory service."""
    return InventoryService(session, audit)
