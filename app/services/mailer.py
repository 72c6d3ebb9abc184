"""Outbound email over SMTP (password reset links)."""

import logging
from email.message import EmailMessage
from typing import TYPE_CHECKING

import aiosmtplib

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Password Reset Request - HCF Stream"


class MailDeliveryError(Exception):
    """Raised when the SMTP server rejects or cannot accept a message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def build_reset_message(to_email: str, link: str, settings: "Settings") -> EmailMessage:
    minutes = settings.RESET_TOKEN_EXPIRE_MINUTES
    msg = EmailMessage()
    msg["From"] = settings.EMAIL_FROM or settings.SMTP_USER or "no-reply@localhost"
    msg["To"] = to_email
    msg["Subject"] = RESET_SUBJECT
    msg.set_content(
        "You requested a password reset for your HCF Stream account.\n\n"
        f"Open this link to choose a new password:\n{link}\n\n"
        f"This link will expire in {minutes} minutes.\n"
        "If you didn't request this reset, please ignore this email.\n"
    )
    msg.add_alternative(
        f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Password Reset Request</h2>
  <p>You requested a password reset for your HCF Stream account.</p>
  <p><a href="{link}">Reset Password</a></p>
  <p>This link will expire in {minutes} minutes.</p>
  <p>If you didn't request this reset, please ignore this email.</p>
</div>
""",
        subtype="html",
    )
    return msg


async def send_reset_email(to_email: str, link: str, settings: "Settings") -> None:
    """Send the reset link. Raises MailDeliveryError on SMTP or connection failure."""
    message = build_reset_message(to_email, link, settings)
    password = settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else None
    try:
        await aiosmtplib.send(
            message,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER or None,
            password=password or None,
            use_tls=settings.SMTP_USE_TLS,
        )
    except (aiosmtplib.SMTPException, OSError) as e:
        raise MailDeliveryError(f"SMTP delivery failed: {e!s}") from e
    logger.info("Reset email sent", extra={"smtp_host": settings.SMTP_HOST})
