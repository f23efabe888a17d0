"""
Mail sender - outbound SMTP delivery for password reset links.

Delivery failure is reported to the caller as MailDeliveryError; callers
treat it as non-fatal (the reset token stays valid).
"""

import logging
from email.message import EmailMessage
from typing import Optional

import aiosmtplib

from app.settings import (
    EMAIL_FROM,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_TIMEOUT_SECONDS,
    SMTP_USE_TLS,
    SMTP_USER,
)

logger = logging.getLogger(__name__)


class MailDeliveryError(Exception):
    pass


class MailSender:
    """Async SMTP sender configured from settings."""

    def __init__(
        self,
        host: str = SMTP_HOST,
        port: int = SMTP_PORT,
        username: str = SMTP_USER,
        password: str = SMTP_PASSWORD,
        use_tls: bool = SMTP_USE_TLS,
        from_email: str = EMAIL_FROM,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_email = from_email

    @property
    def is_configured(self) -> bool:
        return bool(self.host)

    def build_message(self, to_email: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_email
        message["To"] = to_email
        message["Subject"] = subject
        message.set_content(body)
        return message

    async def send(self, to_email: str, subject: str, body: str) -> None:
        if not self.is_configured:
            logger.warning("[Email] SMTP_HOST not set, cannot send email")
            raise MailDeliveryError("Email service is not configured")

        message = self.build_message(to_email, subject, body)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.use_tls,
                timeout=SMTP_TIMEOUT_SECONDS,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"[Email] Failed to send '{subject}' to {to_email}: {e}")
            raise MailDeliveryError(str(e)) from e
        logger.info(f"[Email] Sent '{subject}' to {to_email}")


_mail_sender: Optional[MailSender] = None


def get_mail_sender() -> MailSender:
    """FastAPI dependency / singleton accessor."""
    global _mail_sender
    if _mail_sender is None:
        _mail_sender = MailSender()
    return _mail_sender


def reset_password_email(link: str) -> str:
    return (
        "You are receiving this because you (or someone else) have requested the reset "
        "of the password for your admin account.\n\n"
        "Please click on the following link, or paste it into your browser, to complete the process "
        "within one hour of receiving it:\n\n"
        f"{link}\n\n"
        "If you did not request this, please ignore this email and your password will remain unchanged.\n"
    )
