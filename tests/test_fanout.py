"""Tests for app/notification/fanout.py.

Senders are in-memory fakes; no SMTP involved.
"""
from __future__ import annotations

import asyncio
import threading
import time

import pytest

from app.notification.errors import (
    AllDeliveriesFailedError,
    EmptyRecipientSetError,
    ErrorKind,
    RecipientValidationError,
)
from app.notification.fanout import AggregateResult, Failed, Sent, dispatch
from app.notification.recipients import filter_recipients


def _run(coro):
    return asyncio.run(coro)


# ===========================================================================
# AggregateResult
# ===========================================================================

class TestAggregateResult:
    def test_from_outcomes_splits_in_order(self):
        result = AggregateResult.from_outcomes(
            [Sent("a@x.com"), Failed("b@x.com", "boom"), Sent("c@x.com")]
        )
        assert result.successes == ("a@x.com", "c@x.com")
        assert result.failures == (Failed("b@x.com", "boom"),)
        assert result.attempted == 3
        assert result.is_partial is True
        assert result.is_complete is False

    def test_complete_result(self):
        result = AggregateResult.from_outcomes([Sent("a@x.com")])
        assert result.is_complete is True
        assert result.is_partial is False

    def test_immutable(self):
        result = AggregateResult(successes=("a@x.com",))
        with pytest.raises(AttributeError):
            result.successes = ()  # type: ignore[misc]

    def test_failed_as_dict(self):
        assert Failed("a@x.com", "nope").as_dict() == {"email": "a@x.com", "error": "nope"}


# ===========================================================================
# dispatch
# ===========================================================================

class TestDispatchAllSucceed:
    def test_every_recipient_sent(self, make_sender):
        sender = make_sender()
        recipients = ["a@x.com", "b@x.com", "c@x.com"]

        result = _run(dispatch(sender, recipients, "Subj", "Body"))

        assert set(result.successes) == set(recipients)
        assert result.failures == ()
        assert sorted(to for to, _, _ in sender.sent) == sorted(recipients)

    def test_subject_and_body_forwarded(self, make_sender):
        sender = make_sender()
        _run(dispatch(sender, ["a@x.com"], "Emergency", "text body"))
        assert sender.sent == [("a@x.com", "Emergency", "text body")]

    def test_duplicates_sent_once(self, make_sender):
        sender = make_sender()
        result = _run(dispatch(sender, ["a@x.com", "a@x.com"], "S", "B"))
        assert result.successes == ("a@x.com",)
        assert sender.attempted == ["a@x.com"]


class TestDispatchAllFail:
    def test_raises_all_deliveries_failed(self, make_sender):
        sender = make_sender(fail_all=True)
        recipients = ["a@x.com", "b@x.com"]

        with pytest.raises(AllDeliveriesFailedError) as excinfo:
            _run(dispatch(sender, recipients, "S", "B"))

        assert excinfo.value.kind is ErrorKind.TOTAL_FAILURE
        assert len(excinfo.value.failures) == 2
        assert {f.recipient for f in excinfo.value.failures} == set(recipients)
        assert all(f.reason == "mailbox unavailable" for f in excinfo.value.failures)

    def test_every_recipient_still_attempted(self, make_sender):
        sender = make_sender(fail_all=True)
        with pytest.raises(AllDeliveriesFailedError):
            _run(dispatch(sender, ["a@x.com", "b@x.com", "c@x.com"], "S", "B"))
        assert sorted(sender.attempted) == ["a@x.com", "b@x.com", "c@x.com"]


class TestDispatchPartial:
    def test_mixed_outcome_is_not_an_error(self, make_sender):
        sender = make_sender(fail_for={"b@x.com"})
        recipients = ["a@x.com", "b@x.com", "c@x.com"]

        result = _run(dispatch(sender, recipients, "S", "B"))

        assert result.successes == ("a@x.com", "c@x.com")
        assert [f.recipient for f in result.failures] == ["b@x.com"]
        assert len(result.successes) + len(result.failures) == len(recipients)
        assert result.is_partial is True

    def test_unexpected_exception_becomes_failed_outcome(self):
        class Flaky:
            def send(self, to, subject, body):
                if to.startswith("bad"):
                    raise RuntimeError("socket closed")

        result = _run(dispatch(Flaky(), ["ok@x.com", "bad@x.com"], "S", "B"))

        assert result.successes == ("ok@x.com",)
        assert result.failures == (Failed("bad@x.com", "socket closed"),)


class TestDispatchValidation:
    def test_empty_recipients_rejected_without_sending(self, make_sender):
        sender = make_sender()
        with pytest.raises(RecipientValidationError) as excinfo:
            _run(dispatch(sender, [], "S", "B"))
        assert excinfo.value.kind is ErrorKind.VALIDATION
        assert sender.attempted == []

    def test_empty_recipient_set_alias(self):
        assert EmptyRecipientSetError is RecipientValidationError

    def test_malformed_entry_never_reaches_sender(self, make_sender):
        sender = make_sender()
        recipients = filter_recipients(["a@x.com", "not-an-email", "b@x.com"])

        _run(dispatch(sender, recipients, "S", "B"))

        assert set(sender.attempted) == {"a@x.com", "b@x.com"}


class TestDispatchConcurrency:
    def test_attempts_overlap(self):
        """All sends must be in flight together, not run one after another."""
        barrier = threading.Barrier(3, timeout=5)

        class BarrierSender:
            def send(self, to, subject, body):
                barrier.wait()

        result = _run(dispatch(BarrierSender(), ["a@x.com", "b@x.com", "c@x.com"], "S", "B"))
        assert len(result.successes) == 3

    def test_waits_for_slow_attempts(self):
        finished: list[str] = []

        class SlowSender:
            def send(self, to, subject, body):
                if to == "slow@x.com":
                    time.sleep(0.2)
                finished.append(to)

        result = _run(dispatch(SlowSender(), ["fast@x.com", "slow@x.com"], "S", "B"))

        assert sorted(finished) == ["fast@x.com", "slow@x.com"]
        assert result.successes == ("fast@x.com", "slow@x.com")
