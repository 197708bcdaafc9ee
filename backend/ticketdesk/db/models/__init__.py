# backend/ticketdesk/db/models/__init__.py
from ticketdesk.db.models.tenant import Tenant
from ticketdesk.db.models.user import User
from ticketdesk.db.models.voucher import Voucher
from ticketdesk.db.models.sale import Sale
from ticketdesk.db.models.plan import SubscriptionPlan
from ticketdesk.db.models.activity_log import ActivityLog
from ticketdesk.db.models.task import Task

__all__ = ["Tenant", "User", "Voucher", "Sale", "SubscriptionPlan", "ActivityLog", "Task"]
