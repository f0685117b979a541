"""
Typed failures raised by the booking engine and the ticket ledger.

Every error carries a machine-readable ``kind`` and the HTTP status it maps
to at the route boundary (see ``register_exception_handlers`` in main).
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    AVAILABILITY = "availability_error"
    INSUFFICIENT_INVENTORY = "insufficient_inventory"
    AUTHORIZATION = "authorization_error"
    INVALID_TRANSITION = "invalid_transition"
    INVENTORY_INCONSISTENCY = "inventory_inconsistency"
    CONTENTION = "contention"


class MarketplaceError(Exception):
    """Base error with a kind, an HTTP status and a user-safe message."""

    kind: ErrorKind = ErrorKind.VALIDATION
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "detail": self.message}

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class ValidationError(MarketplaceError):
    kind = ErrorKind.VALIDATION
    status_code = 400


class NotFoundError(MarketplaceError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[object] = None) -> None:
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.resource_id = resource_id


class AvailabilityError(MarketplaceError):
    kind = ErrorKind.AVAILABILITY
    status_code = 400

    def __init__(self, message: str = "Room type is not available for selected dates") -> None:
        super().__init__(message)


class InsufficientInventoryError(MarketplaceError):
    kind = ErrorKind.INSUFFICIENT_INVENTORY
    status_code = 400

    def __init__(self, ticket_type: str, requested: int, available: int) -> None:
        super().__init__(
            f'Not enough tickets available for "{ticket_type}". '
            f"Requested: {requested}, Available: {available}"
        )
        self.ticket_type = ticket_type
        self.requested = requested
        self.available = available


class AuthorizationError(MarketplaceError):
    kind = ErrorKind.AUTHORIZATION
    status_code = 403


class InvalidTransitionError(MarketplaceError):
    kind = ErrorKind.INVALID_TRANSITION
    status_code = 400

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Invalid booking transition: {current} -> {target}")
        self.current = current
        self.target = target


class InventoryInconsistencyError(MarketplaceError):
    """Capacity math says a room is free but no physical room record is."""

    kind = ErrorKind.INVENTORY_INCONSISTENCY
    status_code = 500


class ContentionError(MarketplaceError):
    """Every retry of a write lost to a concurrent writer or an identifier collision."""

    kind = ErrorKind.CONTENTION
    status_code = 409
