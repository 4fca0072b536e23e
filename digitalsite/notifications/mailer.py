"""SendGrid transactional email sender."""

import asyncio
import logging

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Email, Mail

from digitalsite.config import Settings
from digitalsite.errors import ExternalServiceError
from digitalsite.notifications.templates import EmailContent

logger = logging.getLogger(__name__)


class Mailer:
    """Sends rendered emails through SendGrid.

    Without an API key and sender address the mailer runs in mock mode and
    only logs what it would have sent.
    """

    def __init__(self, settings: Settings):
        self.api_key = settings.sendgrid_api_key
        self.from_email = settings.sendgrid_from_email
        self.from_name = settings.sendgrid_from_name
        self.enabled = settings.sendgrid_configured
        if not self.enabled:
            logger.warning("Email service not configured. Missing SENDGRID_API_KEY or SENDGRID_FROM_EMAIL.")

    async def send(self, to_email: str, content: EmailContent) -> None:
        """Send ``content`` to ``to_email``.

        Raises:
            ExternalServiceError: If SendGrid rejects or fails the request.
        """
        if not self.enabled:
            logger.info("[Mock Email] To: %s | Subject: %s", to_email, content.subject)
            return

        message = Mail(
            from_email=Email(self.from_email, self.from_name),
            to_emails=to_email,
            subject=content.subject,
            html_content=content.html,
            plain_text_content=content.text,
        )
        client = SendGridAPIClient(self.api_key)
        try:
            # The SendGrid client is synchronous
            response = await asyncio.to_thread(client.send, message)
        except Exception as e:
            raise ExternalServiceError(f"SendGrid request failed: {e}") from e

        if response.status_code >= 400:
            raise ExternalServiceError(
                f"SendGrid rejected email to {to_email}",
                details={"status_code": response.status_code},
            )
        logger.info("Email %r sent to %s (status %s)", content.subject, to_email, response.status_code)
