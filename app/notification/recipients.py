"""Recipient filtering.

Anything that is not a string containing ``@`` is dropped silently;
malformed entries are excluded from dispatch, not reported as errors.
Raw values are never logged.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

logger = logging.getLogger(__name__)


def is_plausible_email(value: object) -> bool:
    return isinstance(value, str) and "@" in value.strip()


def filter_recipients(raw: Iterable[object] | None) -> list[str]:
    """Return the plausible email addresses in *raw*, in first-seen order.

    Entries are whitespace-stripped and de-duplicated.  ``None`` yields an
    empty list.
    """
    recipients: list[str] = []
    seen: set[str] = set()
    dropped = 0

    for value in raw or ():
        if not is_plausible_email(value):
            dropped += 1
            continue
        address = value.strip()
        if address in seen:
            continue
        seen.add(address)
        recipients.append(address)

    if dropped:
        logger.debug("filter_recipients: dropped %d malformed entries", dropped)
    return recipients
