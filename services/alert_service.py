"""
services/alert_service.py

Responsibility: Delivers best-effort e-mail alerts when the update service
stops unexpectedly.
Does NOT: decide when to alert, retry delivery, or raise on failure.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from config import Settings

logger = logging.getLogger(__name__)


class AlertService:
    """
    Sends alert e-mails over SMTP with implicit TLS.

    Delivery failures are logged and swallowed: an alert must never take the
    update service down with it.

    Collaborators:
        - Settings: mail credentials, sender, recipient and SMTP endpoint
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def enabled(self) -> bool:
        return self._settings.mail_configured

    async def send_alert(self, subject: str, text: str) -> bool:
        """
        Sends a plain-text alert e-mail.

        The blocking SMTP exchange runs in a worker thread so the event loop
        keeps serving the scheduler and the status endpoints.

        Args:
            subject: The e-mail subject line.
            text: The plain-text body.

        Returns:
            True if the message was handed to the SMTP server, False if mail
            is not configured or delivery failed.
        """
        if not self.enabled:
            logger.warning("Email service not configured.")
            return False

        message = self._build_message(subject, text)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send alert '%s': %s", subject, exc)
            return False

        logger.info("Alert sent: %s", subject)
        return True

    def _build_message(self, subject: str, text: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._settings.mail_from or self._settings.mail_user
        message["To"] = self._settings.mail_to or self._settings.mail_user
        message["Subject"] = subject
        message.set_content(text)
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP_SSL(self._settings.smtp_host, self._settings.smtp_port, timeout=30) as smtp:
            smtp.login(self._settings.mail_user, self._settings.mail_password)
            smtp.send_message(message)
