# backend/ticketdesk/api/v1/vouchers.py
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from ticketdesk.api.dependencies import inventory_service, require_module
from ticketdesk.core.constants import ModuleKey, VoucherStatus
from ticketdesk.core.rbac import Actor
from ticketdesk.schemas.voucher import (
    ImportResult, PriceUpdate, ProfilePriceUpdate, ProfileStock, Voucher as VoucherSchema, VoucherImport,
)
from ticketdesk.services.inventory_service import InventoryService

router = APIRouter()


@router.get("", response_model=List[VoucherSchema])
async def list_vouchers(
    tenant_id: str,
    voucher_status: Optional[VoucherStatus] = Query(default=None, alias="status"),
    profile: Optional[str] = None,
    skip: int = Query(default=0, ge=0),
    limit: Optional[int] = Query(default=None, ge=1, le=5000),
    actor: Actor = Depends(require_module(ModuleKey.TICKETS)),
    inventory: InventoryService = Depends(inventory_service),
):
    return await inventory.list_vouchers(actor, tenant_id, status=voucher_status, profile=profile, skip=skip, limit=limit)


@router.get("/stock", response_model=List[ProfileStock])
async def stock_by_profile(
    tenant_id: str,
    actor: Actor = Depends(require_module(ModuleKey.SALES)),
    inventory: InventoryService = Depends(inventory_service),
):
    """Unsold count and price per profile, for the seller terminal"""
    return await inventory.stock_by_profile(actor, tenant_id)


@router.post("/import", response_model=ImportResult, status_code=status.HTTP_201_CREATED)
async def import_vouchers(
    tenant_id: str,
    request: VoucherImport,
    actor: Actor = Depends(require_module(ModuleKey.TICKETS)),
    inventory: InventoryService = Depends(inventory_service),
):
    result = await inventory.bulk_import(actor, tenant_id, [row.model_dump() for row in request.rows])
    return ImportResult(
        inserted_count=result.inserted_count,
        skipped_count=result.skipped_count,
        cost=result.cost,
        balance=result.balance,
    )


@router.put("/reprice")
async def reprice_profile(
    tenant_id: str,
    request: ProfilePriceUpdate,
    actor: Actor = Depends(require_module(ModuleKey.TICKETS)),
    inventory: InventoryService = Depends(inventory_service),
):
    """Reprice the unsold vouchers of a profile"""
    updated = await inventory.update_price_by_profile(actor, tenant_id, request.profile, request.price)
    return {"updated": updated}


@router.delete("/purge")
async def purge_profile(
    tenant_id: str,
    profile: str,
    actor: Actor = Depends(require_module(ModuleKey.TICKETS)),
    inventory: InventoryService = Depends(inventory_service),
):
    """Delete the unsold vouchers of a profile"""
    deleted = await inventory.purge_by_profile(actor, tenant_id, profile)
    return {"deleted": deleted}


@router.put("/{voucher_id}/price", response_model=VoucherSchema)
async def reprice_voucher(
    tenant_id: str,
    voucher_id: str,
    request: PriceUpdate,
    actor: Actor = Depends(require_module(ModuleKey.TICKETS)),
    inventory: InventoryService = Depends(inventory_service),
):
    return await inventory.reprice_voucher(actor, tenant_id, voucher_id, request.price)


@router.delete("/{voucher_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_voucher(
    tenant_id: str,
    voucher_id: str,
    actor: Actor = Depends(require_module(ModuleKey.TICKETS)),
    inventory: InventoryService = Depends(inventory_service),
):
    await inventory.delete_one(actor, tenant_id, voucher_id)
