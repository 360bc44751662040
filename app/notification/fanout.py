"""Concurrent fan-out of one message to many recipients.

Every recipient gets exactly one delivery attempt.  Attempts run
concurrently and are joined before :func:`dispatch` returns; a failure in
one attempt is captured as a :class:`Failed` outcome and never cancels
its siblings.  Retries are the mail sender's concern, not the engine's.

Safety: recipient addresses are logged in masked form only.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, Union

from app.core.logging import mask_email
from app.notification.errors import (
    AllDeliveriesFailedError,
    DeliveryError,
    RecipientValidationError,
)

logger = logging.getLogger(__name__)


class MailSender(Protocol):
    def send(self, to: str, subject: str, body: str) -> None:
        """Deliver one message or raise :class:`DeliveryError`."""


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Sent:
    recipient: str


@dataclass(frozen=True)
class Failed:
    recipient: str
    reason: str

    def as_dict(self) -> dict[str, str]:
        return {"email": self.recipient, "error": self.reason}


DeliveryOutcome = Union[Sent, Failed]


@dataclass(frozen=True)
class AggregateResult:
    """Outcome of one :func:`dispatch` call, in recipient order."""

    successes: tuple[str, ...]
    failures: tuple[Failed, ...] = ()

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[DeliveryOutcome]) -> AggregateResult:
        successes: list[str] = []
        failures: list[Failed] = []
        for outcome in outcomes:
            if isinstance(outcome, Sent):
                successes.append(outcome.recipient)
            else:
                failures.append(outcome)
        return cls(successes=tuple(successes), failures=tuple(failures))

    @property
    def attempted(self) -> int:
        return len(self.successes) + len(self.failures)

    @property
    def is_complete(self) -> bool:
        return not self.failures

    @property
    def is_partial(self) -> bool:
        return bool(self.successes) and bool(self.failures)


# ---------------------------------------------------------------------------
# dispatch
# ---------------------------------------------------------------------------

async def _attempt(sender: MailSender, recipient: str, subject: str, body: str) -> DeliveryOutcome:
    try:
        await asyncio.to_thread(sender.send, recipient, subject, body)
    except DeliveryError as exc:
        reason = exc.reason
    except Exception as exc:  # one attempt must never abort its siblings
        reason = str(exc) or type(exc).__name__
    else:
        return Sent(recipient)

    logger.warning("Delivery to %s failed: %s", mask_email(recipient), reason)
    return Failed(recipient, reason)


async def dispatch(
    sender: MailSender,
    recipients: Iterable[str],
    subject: str,
    body: str,
) -> AggregateResult:
    """Send *body* to every recipient concurrently and aggregate the outcomes.

    Parameters
    ----------
    sender:
        Mail-sending collaborator; must tolerate concurrent calls for
        distinct recipients.
    recipients:
        Pre-filtered addresses (see :func:`app.notification.recipients.filter_recipients`).
        Duplicates are sent once.

    Returns
    -------
    AggregateResult
        Complete or partial success.

    Raises
    ------
    RecipientValidationError
        If *recipients* is empty.  No send is attempted.
    AllDeliveriesFailedError
        If every attempt failed.
    """
    targets = list(dict.fromkeys(recipients))
    if not targets:
        raise RecipientValidationError("No recipients to notify.")

    outcomes = await asyncio.gather(
        *(_attempt(sender, recipient, subject, body) for recipient in targets)
    )
    result = AggregateResult.from_outcomes(outcomes)

    if not result.successes:
        logger.error("All %d deliveries failed", result.attempted)
        raise AllDeliveriesFailedError(result.failures)

    logger.info(
        "Dispatched to %d of %d recipients", len(result.successes), result.attempted
    )
    return result
