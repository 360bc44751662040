"""Error taxonomy for notification delivery.

Callers branch on :attr:`NotificationError.kind`, never on the message text.
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.notification.fanout import Failed


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    DELIVERY = "delivery"
    TOTAL_FAILURE = "total_failure"


class NotificationError(Exception):
    kind: ErrorKind


class RecipientValidationError(NotificationError):
    """No usable recipients; nothing was dispatched."""

    kind = ErrorKind.VALIDATION


# Raised by dispatch() for an empty recipient set.
EmptyRecipientSetError = RecipientValidationError


class DeliveryError(NotificationError):
    """One recipient's send failed."""

    kind = ErrorKind.DELIVERY

    def __init__(self, recipient: str, reason: str) -> None:
        super().__init__(reason)
        self.recipient = recipient
        self.reason = reason


class AllDeliveriesFailedError(NotificationError):
    """Every attempted delivery failed."""

    kind = ErrorKind.TOTAL_FAILURE

    def __init__(self, failures: tuple[Failed, ...]) -> None:
        super().__init__(f"Delivery failed for all {len(failures)} recipient(s)")
        self.failures = failures
