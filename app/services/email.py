"""Transactional email over SMTP: welcome and deactivation notices."""

from __future__ import annotations

import logging
import smtplib
import ssl
from collections.abc import Callable
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import TYPE_CHECKING, Any

from app.core.config import get_settings
from app.core.logging import redact_email

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models import User

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the SMTP server cannot be reached or rejects the message."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class EmailService:
    """
    Sends HTML emails through SMTP with STARTTLS and a bounded timeout.

    When no SMTP host or sender is configured (dev), messages are logged
    instead of sent.
    """

    def __init__(
        self,
        *,
        smtp_host: str | None = None,
        smtp_port: int = 587,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        use_tls: bool = True,
        from_email: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.use_tls = use_tls
        self.from_email = from_email or smtp_user
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> EmailService:
        password = settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else None
        return cls(
            smtp_host=settings.SMTP_HOST,
            smtp_port=settings.SMTP_PORT,
            smtp_user=settings.SMTP_USER,
            smtp_password=password,
            use_tls=settings.SMTP_USE_TLS,
            from_email=settings.SMTP_FROM,
            timeout=settings.SMTP_TIMEOUT_SEC,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def send(self, to_address: str, subject: str, html_body: str) -> None:
        """Send one message. Raises EmailDeliveryError on SMTP or network failure."""
        if not self.is_configured:
            logger.info(
                "Email not configured; would send to=%s subject=%r",
                redact_email(to_address),
                subject,
            )
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to_address
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, [to_address], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(f"Failed to send email: {e!s}", cause=e) from e
        logger.info("Email sent to=%s subject=%r", redact_email(to_address), subject)

    def send_welcome_email(self, user: User) -> None:
        name = escape(user.first_name)
        email = escape(user.email)
        html = (
            f"<h1>Welcome {name}!</h1>"
            "<p>Thank you for registering with our platform.</p>"
            "<p>Your account has been successfully created.</p>"
            f"<p>You can now log in using your email: {email}</p>"
        )
        self.send(user.email, "Welcome to Our Platform", html)

    def send_deactivation_email(self, user: User) -> None:
        html = (
            "<h1>Account Deactivation</h1>"
            f"<p>Dear {escape(user.first_name)},</p>"
            "<p>Your account has been deactivated.</p>"
            "<p>If you believe this is a mistake, please contact our support team.</p>"
        )
        self.send(user.email, "Account Deactivation Notice", html)


def notify_safely(send: Callable[..., Any], *args: Any) -> bool:
    """Run a notification callable; log and swallow delivery failures. Returns success."""
    try:
        send(*args)
        return True
    except Exception:
        logger.exception("Notification failed: %s", getattr(send, "__name__", send))
        return False


def get_email_service() -> EmailService:
    """Dependency: email service built from current settings."""
    return EmailService.from_settings(get_settings())
