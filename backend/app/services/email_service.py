"""Email service for sending customer notifications via SMTP."""

from __future__ import annotations

import logging
from email.message import EmailMessage

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending transactional emails via SMTP."""

    async def send_email(self, to: str, subject: str, body: str) -> bool:
        """Send a plain-text email via SMTP.

        Args:
            to: Recipient email address.
            subject: Email subject line.
            body: Plain-text content of the email.

        Returns:
            True if sent successfully (or no-op when SMTP unconfigured).

        Raises:
            aiosmtplib.SMTPException: If the SMTP server rejects the message.
        """
        if not settings.SMTP_HOST:
            logger.info("SMTP not configured, skipping email to %s: %s", to, subject)
            return True

        import aiosmtplib

        msg = EmailMessage()
        msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)

        await aiosmtplib.send(
            msg,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME or None,
            password=settings.SMTP_PASSWORD or None,
            start_tls=settings.SMTP_USE_TLS,
        )
        logger.info("Email sent to %s: %s", to, subject)
        return True
