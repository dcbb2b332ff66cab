"""
ProjectRepo Backend - Outbound Email
=====================================

What:  The mail transport used for OTP codes and review notices.
How:   `Mailer` is the abstract contract; `SmtpMailer` delivers through
       aiosmtplib with tenacity retries; `NullMailer` logs and discards
       (selected when SMTP_HOST is empty).
Who:   RegistrationService and ProjectService, injected at construction.

Contract:
    send(to, subject, html) -> bool
        True when the message was handed to the transport, False otherwise.
        Never raises: a failed email must not fail the state change that
        triggered it.
"""

import logging
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Optional

import aiosmtplib
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from projectrepo.config import settings

logger = logging.getLogger(__name__)


class Mailer(ABC):
    """Abstract fire-and-forget email sender."""

    @abstractmethod
    async def send(self, to: str, subject: str, html: str) -> bool:
        ...

    @property
    @abstractmethod
    def transport_name(self) -> str:
        """Short label reported by the health check (e.g. "smtp", "disabled")."""
        ...


class NullMailer(Mailer):
    """Used when SMTP is not configured: logs the subject and recipient only."""

    transport_name = "disabled"

    async def send(self, to: str, subject: str, html: str) -> bool:
        logger.warning("Email not sent (SMTP not configured): to=%s subject=%r", to, subject)
        return False


class SmtpMailer(Mailer):
    """
    SMTP delivery via aiosmtplib.

    Transient transport failures (connection refused, timeouts, 4xx replies)
    are retried with exponential backoff; after the last attempt the failure
    is logged and `send` returns False.
    """

    transport_name = "smtp"

    def __init__(
        self,
        hostname: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        start_tls: bool = True,
        sender: str = settings.email_from,
        retry_attempts: int = 3,
        retry_min_wait: float = 1,
        retry_max_wait: float = 8,
    ):
        self.hostname = hostname
        self.port = port
        self.username = username or None
        self.password = password or None
        self.start_tls = start_tls
        self.sender = sender
        self.retry_attempts = retry_attempts
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    async def send(self, to: str, subject: str, html: str) -> bool:
        message = self._build_message(to, subject, html)
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type((aiosmtplib.SMTPException, OSError)),
                stop=stop_after_attempt(self.retry_attempts),
                wait=wait_exponential_jitter(
                    initial=self.retry_min_wait,
                    max=self.retry_max_wait,
                    jitter=1 if self.retry_max_wait else 0,
                ),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    await aiosmtplib.send(
                        message,
                        hostname=self.hostname,
                        port=self.port,
                        username=self.username,
                        password=self.password,
                        start_tls=self.start_tls,
                    )
        except Exception as e:
            logger.error("Failed to send email to %s (%r): %s", to, subject, e)
            return False

        logger.info("Email sent to %s: %s", to, subject)
        return True


def build_mailer() -> Mailer:
    """Select the transport from settings."""
    if not settings.smtp_configured:
        return NullMailer()
    return SmtpMailer(
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user,
        password=settings.smtp_password,
        start_tls=settings.smtp_start_tls,
        sender=settings.email_from,
        retry_attempts=settings.email_retry_attempts,
    )


# ── Singleton Instance ────────────────────────────────────────────────────
mailer = build_mailer()
