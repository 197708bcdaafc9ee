# backend/ticketdesk/core/exceptions.py
"""
Domain error taxonomy.

Engines raise these; `main.py` maps them to HTTP responses. A voucher
already claimed by another seller is not an error: `sell` returns None.
"""
import functools
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

logger = logging.getLogger(__name__)

STORE_FAILURES = (OperationalError, InterfaceError)


class TicketDeskError(Exception):
    """Base class for all domain errors"""

    status_code = 500

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, **self.context}


class ValidationError(TicketDeskError):
    status_code = 400


class AuthorizationError(TicketDeskError):
    status_code = 403


class NotFoundError(TicketDeskError):
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} not found", entity=entity, id=str(entity_id))


class ConflictError(TicketDeskError):
    status_code = 409


class InsufficientBalanceError(TicketDeskError):
    status_code = 402

    def __init__(self, required: Decimal, available: Decimal):
        super().__init__(
            f"Insufficient credit: {required} required, {available} available",
            required=str(required),
            available=str(available),
        )
        self.required = required
        self.available = available


class BackendUnavailableError(TicketDeskError):
    status_code = 503


def degrade_to_empty(func):
    """Reads that return collections degrade to [] when the store is unreachable"""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except STORE_FAILURES as exc:
            logger.warning(f"Store unavailable in {func.__qualname__}, returning empty result: {exc}")
            return []

    return wrapper


def surface_store_failures(func):
    """
    Writes must never silently no-op: roll back the service session and
    re-raise store failures as BackendUnavailableError.
    """

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except STORE_FAILURES as exc:
            await rollback_quietly(self.session)
            logger.error(f"Store unavailable in {func.__qualname__}: {exc}")
            raise BackendUnavailableError("Backend store is unavailable") from exc

    return wrapper


async def rollback_quietly(session: Optional[Any]) -> None:
    if session is None:
        return
    try:
        await session.rollback()
    except SQLAlchemyError as exc:
        logger.warning(f"Rollback after store failure also failed: {exc}")
