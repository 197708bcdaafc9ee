# backend/ticketdesk/api/v1/router.py
from fastapi import APIRouter
from ticketdesk.api.v1 import auth, tenants, vouchers, sales, users, logs, plans, stats, tasks

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(tenants.router, prefix="/tenants", tags=["tenants"])
api_router.include_router(vouchers.router, prefix="/tenants/{tenant_id}/vouchers", tags=["vouchers"])
api_router.include_router(sales.router, prefix="/tenants/{tenant_id}/sales", tags=["sales"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(logs.router, prefix="/logs", tags=["logs"])
api_router.include_router(plans.router, prefix="/plans", tags=["plans"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
