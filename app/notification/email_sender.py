"""SMTP mail sender.

Delivers plain-text emergency emails via an SMTP relay.  Retries up to
``max_retries`` times with exponential backoff before raising
:class:`DeliveryError`.  Safe to call from several threads at once: every
call opens its own connection.

Safety: recipient addresses are logged in masked form only.
"""
from __future__ import annotations

import logging
import smtplib
import time
from email.message import EmailMessage

from app.core.logging import mask_email
from app.core.settings import Settings
from app.notification.errors import DeliveryError

logger = logging.getLogger(__name__)

_BACKOFF_BASE = 1  # seconds: 1, 2, 4


class SmtpMailSender:
    """Send plain-text emails through an SMTP relay."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int = 587,
        *,
        from_address: str = "noreply@carecircle.local",
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = False,
        max_retries: int = 3,
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.from_address = from_address
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.max_retries = max(1, max_retries)

    @classmethod
    def from_settings(cls, settings: Settings) -> SmtpMailSender:
        return cls(
            settings.smtp_host,
            settings.smtp_port,
            from_address=settings.smtp_from,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            max_retries=settings.smtp_max_retries,
        )

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to
        msg.set_content(body)
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg)

    def send(self, to: str, subject: str, body: str) -> None:
        """Send one message to *to*.

        Raises
        ------
        DeliveryError
            After ``max_retries`` failed attempts.
        """
        msg = self._build_message(to, subject, body)
        masked = mask_email(to)

        last_error = ""
        for attempt in range(1, self.max_retries + 1):
            try:
                self._deliver(msg)
                logger.info("Delivered email to %s (attempt %d)", masked, attempt)
                return
            except (smtplib.SMTPException, OSError) as exc:
                last_error = str(exc) or type(exc).__name__
                logger.warning(
                    "SMTP error for %s attempt %d: %s", masked, attempt, last_error
                )
                if attempt < self.max_retries:
                    time.sleep(_BACKOFF_BASE * (2 ** (attempt - 1)))

        logger.error("Delivery to %s failed after %d attempts", masked, self.max_retries)
        raise DeliveryError(to, last_error)
