# backend/ticketdesk/api/v1/sales.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from ticketdesk.api.dependencies import inventory_service, require_module
from ticketdesk.core.config import settings
from ticketdesk.core.constants import ModuleKey
from ticketdesk.core.rbac import Actor
from ticketdesk.db.database import get_db
from ticketdesk.db.models.sale import Sale
from ticketdesk.db.repositories.tenant_repository import TenantRepository
from ticketdesk.db.repositories.voucher_repository import VoucherRepository
from ticketdesk.schemas.sale import Receipt, Sale as SaleSchema, SaleCreate, SellNextRequest
from ticketdesk.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)

router = APIRouter()


async def build_receipt(db: AsyncSession, sale: Sale) -> Receipt:
    voucher = await VoucherRepository(db).get(sale.voucher_id)
    tenant = await TenantRepository(db).get(sale.tenant_id)
    tenant_settings = tenant.settings or {}
    return Receipt(
        sale=SaleSchema.model_validate(sale),
        voucher_password=voucher.password,
        header=tenant_settings.get("receipt_header", ""),
        footer=tenant_settings.get("receipt_footer", ""),
        currency=tenant_settings.get("currency", settings.DEFAULT_CURRENCY),
    )


async def sell_next(
    inventory: InventoryService,
    actor: Actor,
    tenant_id: str,
    profile: str,
    customer_phone: Optional[str] = None,
    payment_method=None,
    max_candidates: Optional[int] = None,
) -> Optional[Sale]:
    """
    Try a handful of unsold vouchers of `profile` until one sells.

    Raises 404 when the profile has no stock. Returns None when every
    candidate was claimed by another seller first.
    """
    limit = max_candidates or settings.SELL_MAX_CANDIDATES
    candidates = await inventory.sale_candidates(actor, tenant_id, profile, limit)
    if not candidates:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No unsold vouchers left for profile '{profile}'"
        )

    kwargs = {"customer_phone": customer_phone}
    if payment_method is not None:
        kwargs["payment_method"] = payment_method

    for voucher_id in candidates:
        sale = await inventory.sell(actor, voucher_id, tenant_id, **kwargs)
        if sale is not None:
            return sale

    logger.warning(f"All {len(candidates)} candidates for profile {profile} were sold concurrently")
    return None


@router.get("", response_model=List[SaleSchema])
async def list_sales(
    tenant_id: str,
    seller_id: Optional[str] = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=500, ge=1, le=5000),
    actor: Actor = Depends(require_module(ModuleKey.HISTORY)),
    inventory: InventoryService = Depends(inventory_service),
):
    """Sale history, newest first"""
    return await inventory.list_sales(actor, tenant_id, seller_id=seller_id, skip=skip, limit=limit)


@router.post("/sell-next", response_model=Receipt, status_code=status.HTTP_201_CREATED)
async def sell_next_voucher(
    tenant_id: str,
    request: SellNextRequest,
    actor: Actor = Depends(require_module(ModuleKey.SALES)),
    inventory: InventoryService = Depends(inventory_service),
    db: AsyncSession = Depends(get_db),
):
    """Sell any unsold voucher of a profile"""
    sale = await sell_next(
        inventory, actor, tenant_id, request.profile,
        customer_phone=request.customer_phone,
        payment_method=request.payment_method,
    )
    if sale is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Vouchers were sold concurrently, please retry"
        )
    return await build_receipt(db, sale)


@router.post("/sell/{voucher_id}", response_model=Receipt, status_code=status.HTTP_201_CREATED)
async def sell_voucher(
    tenant_id: str,
    voucher_id: str,
    request: SaleCreate,
    actor: Actor = Depends(require_module(ModuleKey.SALES)),
    inventory: InventoryService = Depends(inventory_service),
    db: AsyncSession = Depends(get_db),
):
    sale = await inventory.sell(
        actor, voucher_id, tenant_id,
        customer_phone=request.customer_phone,
        payment_method=request.payment_method,
    )
    if sale is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Voucher is no longer available"
        )
    return await build_receipt(db, sale)


@router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_sale(
    tenant_id: str,
    sale_id: str,
    actor: Actor = Depends(require_module(ModuleKey.HISTORY)),
    inventory: InventoryService = Depends(inventory_service),
):
    """Cancel a sale and return its voucher to stock"""
    await inventory.cancel(actor, sale_id)
