# backend/ticketdesk/api/v1/tasks.py
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from ticketdesk.api.dependencies import require_module, task_service
from ticketdesk.core.constants import ModuleKey, TaskStatus
from ticketdesk.core.rbac import Actor
from ticketdesk.schemas.task import Task as TaskSchema, TaskCreate, TaskStatusUpdate
from ticketdesk.services.task_service import TaskService

router = APIRouter()


@router.get("", response_model=List[TaskSchema])
async def list_tasks(
    tenant_id: Optional[str] = None,
    task_status: Optional[TaskStatus] = Query(default=None, alias="status"),
    actor: Actor = Depends(require_module(ModuleKey.TASKS)),
    tasks: TaskService = Depends(task_service),
):
    """Agency tasks, newest first; sellers see unassigned tasks and their own"""
    return await tasks.list_tasks(actor, tenant_id, status=task_status)


@router.post("", response_model=TaskSchema, status_code=status.HTTP_201_CREATED)
async def add_task(
    request: TaskCreate,
    actor: Actor = Depends(require_module(ModuleKey.TASKS)),
    tasks: TaskService = Depends(task_service),
):
    return await tasks.add_task(
        actor,
        title=request.title,
        description=request.description,
        priority=request.priority,
        assigned_to=request.assigned_to,
        due_date=request.due_date,
        tenant_id=request.tenant_id,
    )


@router.put("/{task_id}/status", response_model=TaskSchema)
async def update_task_status(
    task_id: str,
    request: TaskStatusUpdate,
    actor: Actor = Depends(require_module(ModuleKey.TASKS)),
    tasks: TaskService = Depends(task_service),
):
    return await tasks.update_status(actor, task_id, request.status)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: str,
    actor: Actor = Depends(require_module(ModuleKey.TASKS)),
    tasks: TaskService = Depends(task_service),
):
    await tasks.delete_task(actor, task_id)
