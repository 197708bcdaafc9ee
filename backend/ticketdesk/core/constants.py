# backend/ticketdesk/core/constants.py
from decimal import Decimal
from enum import Enum
from typing import Dict


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    SELLER = "SELLER"


class VoucherStatus(str, Enum):
    UNSOLD = "UNSOLD"
    SOLD = "SOLD"
    # Reserved for time-based expiry; nothing produces or consults these yet.
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"


class TenantStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    AUTOMATIC = "AUTOMATIC"


class ModuleKey(str, Enum):
    DASHBOARD = "dashboard"
    SALES = "sales"
    HISTORY = "history"
    TICKETS = "tickets"
    TEAM = "team"
    TASKS = "tasks"


DEFAULT_MODULES: Dict[str, bool] = {module.value: True for module in ModuleKey}


# Credit metering
VOUCHERS_PER_CREDIT = 20
CREDIT_PRECISION = Decimal("0.0001")
CREDIT_DECIMALS = 4
UNLIMITED_PLAN = "UNLIMITED"

# Subscriptions use a fixed 30-day month, not calendar months.
DAYS_PER_MONTH = 30
TRIAL_PLAN = "TRIAL"

PIN_LENGTH = 4

DEFAULT_PROFILE = "Default"
DEFAULT_TIME_LIMIT = "0"

class TaskStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


DEFAULT_TASK_TITLE = "Nouvelle tâche"
