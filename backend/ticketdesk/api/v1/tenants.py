# backend/ticketdesk/api/v1/tenants.py
from fastapi import APIRouter, Depends, status
from typing import List

from ticketdesk.api.dependencies import (
    credit_service, get_current_actor, subscription_service, tenant_service,
)
from ticketdesk.core.rbac import Actor
from ticketdesk.schemas.tenant import (
    CreditBalance, CreditRecharge, ModulesUpdate, SubscriptionActivate, SubscriptionRenew,
    Tenant as TenantSchema, TenantCreate, TenantInDB, TenantStatusUpdate, TenantUpdate,
)
from ticketdesk.services.credit_service import CreditService
from ticketdesk.services.subscription_service import SubscriptionService, is_license_active, remaining_days
from ticketdesk.services.tenant_service import TenantService

router = APIRouter()


def to_schema(tenant) -> TenantSchema:
    return TenantSchema(
        **TenantInDB.model_validate(tenant).model_dump(),
        license_active=is_license_active(tenant),
        remaining_days=remaining_days(tenant),
    )


@router.get("", response_model=List[TenantSchema])
async def list_tenants(
    actor: Actor = Depends(get_current_actor),
    tenants: TenantService = Depends(tenant_service),
):
    """All agencies for the operator, the caller's own agency otherwise"""
    return [to_schema(t) for t in await tenants.list_tenants(actor)]


@router.post("", response_model=TenantSchema, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    request: TenantCreate,
    actor: Actor = Depends(get_current_actor),
    tenants: TenantService = Depends(tenant_service),
):
    return to_schema(await tenants.create_tenant(actor, request.name))


@router.get("/{tenant_id}", response_model=TenantSchema)
async def get_tenant(
    tenant_id: str,
    actor: Actor = Depends(get_current_actor),
    tenants: TenantService = Depends(tenant_service),
):
    return to_schema(await tenants.get_tenant(actor, tenant_id))


@router.patch("/{tenant_id}", response_model=TenantSchema)
async def update_tenant_settings(
    tenant_id: str,
    request: TenantUpdate,
    actor: Actor = Depends(get_current_actor),
    tenants: TenantService = Depends(tenant_service),
):
    tenant = await tenants.update_settings(actor, tenant_id, name=request.name, settings_patch=request.settings)
    return to_schema(tenant)


@router.put("/{tenant_id}/status", response_model=TenantSchema)
async def set_tenant_status(
    tenant_id: str,
    request: TenantStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    subscriptions: SubscriptionService = Depends(subscription_service),
):
    return to_schema(await subscriptions.set_status(actor, tenant_id, request.status))


@router.post("/{tenant_id}/subscription", response_model=TenantSchema)
async def activate_subscription(
    tenant_id: str,
    request: SubscriptionActivate,
    actor: Actor = Depends(get_current_actor),
    subscriptions: SubscriptionService = Depends(subscription_service),
):
    tenant = await subscriptions.activate(actor, tenant_id, request.plan_name, request.months)
    return to_schema(tenant)


@router.post("/{tenant_id}/renew", response_model=TenantSchema)
async def renew_subscription(
    tenant_id: str,
    request: SubscriptionRenew,
    actor: Actor = Depends(get_current_actor),
    subscriptions: SubscriptionService = Depends(subscription_service),
):
    return to_schema(await subscriptions.renew(actor, tenant_id, request.days))


@router.put("/{tenant_id}/modules", response_model=TenantSchema)
async def set_modules(
    tenant_id: str,
    request: ModulesUpdate,
    actor: Actor = Depends(get_current_actor),
    subscriptions: SubscriptionService = Depends(subscription_service),
):
    return to_schema(await subscriptions.set_modules(actor, tenant_id, request.modules))


@router.post("/{tenant_id}/credits", response_model=CreditBalance)
async def add_credits(
    tenant_id: str,
    request: CreditRecharge,
    actor: Actor = Depends(get_current_actor),
    credits: CreditService = Depends(credit_service),
):
    balance = await credits.recharge(actor, tenant_id, request.amount, request.note)
    return CreditBalance(tenant_id=tenant_id, credits_balance=balance)


@router.delete("/{tenant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tenant(
    tenant_id: str,
    actor: Actor = Depends(get_current_actor),
    tenants: TenantService = Depends(tenant_service),
):
    await tenants.delete_tenant(actor, tenant_id)
