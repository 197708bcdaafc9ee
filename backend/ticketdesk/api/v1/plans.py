# backend/ticketdesk/api/v1/plans.py
from fastapi import APIRouter, Depends, status
from typing import List

from ticketdesk.api.dependencies import get_current_actor, plan_service
from ticketdesk.core.rbac import Actor
from ticketdesk.schemas.plan import Plan as PlanSchema, PlanCreate, PlanUpdate
from ticketdesk.services.plan_service import PlanService

router = APIRouter()


@router.get("", response_model=List[PlanSchema])
async def list_plans(
    actor: Actor = Depends(get_current_actor),
    plans: PlanService = Depends(plan_service),
):
    return await plans.list_plans(actor)


@router.post("", response_model=PlanSchema, status_code=status.HTTP_201_CREATED)
async def create_plan(
    request: PlanCreate,
    actor: Actor = Depends(get_current_actor),
    plans: PlanService = Depends(plan_service),
):
    return await plans.upsert_plan(actor, request.model_dump())


@router.put("/{plan_id}", response_model=PlanSchema)
async def update_plan(
    plan_id: str,
    request: PlanUpdate,
    actor: Actor = Depends(get_current_actor),
    plans: PlanService = Depends(plan_service),
):
    return await plans.upsert_plan(actor, request.model_dump(exclude_unset=True), plan_id=plan_id)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plan(
    plan_id: str,
    actor: Actor = Depends(get_current_actor),
    plans: PlanService = Depends(plan_service),
):
    await plans.delete_plan(actor, plan_id)
