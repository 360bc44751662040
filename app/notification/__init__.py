"""Emergency notification delivery.

Filters recipient lists, delivers plain-text emails through an SMTP relay,
and fans one message out to many recipients, aggregating per-recipient
outcomes into a single result.
"""
from app.notification.errors import (
    AllDeliveriesFailedError,
    DeliveryError,
    EmptyRecipientSetError,
    ErrorKind,
    NotificationError,
    RecipientValidationError,
)
from app.notification.fanout import AggregateResult, Failed, Sent, dispatch
from app.notification.recipients import filter_recipients

__all__ = [
    "AggregateResult",
    "AllDeliveriesFailedError",
    "DeliveryError",
    "EmptyRecipientSetError",
    "ErrorKind",
    "Failed",
    "NotificationError",
    "RecipientValidationError",
    "Sent",
    "dispatch",
    "filter_recipients",
]
