"""Outbound account email over SMTP."""

from email.message import EmailMessage
from typing import Any, Dict, Optional, Tuple

import aiosmtplib
import structlog

from greenlight.config import Settings, get_settings
from greenlight.errors import MailerError

logger = structlog.get_logger(__name__)

# template key -> (subject, plain-text body)
TEMPLATES: Dict[str, Tuple[str, str]] = {
    "user_welcome": (
        "Welcome to Greenlight!",
        "Hi,\n\n"
        "Thanks for signing up for a Greenlight account. We're excited to have you on board!\n\n"
        "For future reference, your user ID number is {user_id}.\n\n"
        "Please send a request to the `PUT /v1/users/activated` endpoint with the "
        "following JSON body to activate your account:\n\n"
        '{{"token": "{activation_token}"}}\n\n'
        "Please note that this is a one-time use token and it will expire in {ttl}.\n\n"
        "Thanks,\n\nThe Greenlight Team\n",
    ),
    "token_activation": (
        "Activate your Greenlight account",
        "Hi,\n\n"
        "Please send a `PUT /v1/users/activated` request with the following JSON body "
        "to activate your account:\n\n"
        '{{"token": "{activation_token}"}}\n\n'
        "Please note that this is a one-time use token and it will expire in {ttl}.\n\n"
        "Thanks,\n\nThe Greenlight Team\n",
    ),
    "token_password_reset": (
        "Reset your Greenlight password",
        "Hi,\n\n"
        "Please send a `PUT /v1/users/password` request with the following JSON body "
        "to set a new password:\n\n"
        '{{"password": "your new password", "token": "{password_reset_token}"}}\n\n'
        "Please note that this is a one-time use token and it will expire in {ttl}.\n\n"
        "Thanks,\n\nThe Greenlight Team\n",
    ),
}


class Mailer:
    """Sends templated plain-text email.

    Delivery is skipped (and logged) when no SMTP host is configured.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def enabled(self) -> bool:
        return bool(self.settings.smtp_host)

    def render(self, recipient: str, template_key: str, data: Dict[str, Any]) -> EmailMessage:
        """Build the message for a template.

        Raises:
            MailerError: If the template is unknown or data is missing a field
        """
        try:
            subject, body = TEMPLATES[template_key]
            text = body.format(**data)
        except KeyError as e:
            raise MailerError(f"cannot render template {template_key!r}: missing {e}") from e

        message = EmailMessage()
        message["From"] = self.settings.mail_sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(text)
        return message

    async def send(self, recipient: str, template_key: str, data: Dict[str, Any]) -> None:
        """Render and deliver a template to one recipient.

        Raises:
            MailerError: If rendering or SMTP delivery fails
        """
        message = self.render(recipient, template_key, data)

        if not self.enabled:
            logger.info("email_delivery_disabled", template=template_key)
            return

        try:
            await aiosmtplib.send(
                message,
                hostname=self.settings.smtp_host,
                port=self.settings.smtp_port,
                username=self.settings.smtp_username or None,
                password=self.settings.smtp_password or None,
                use_tls=self.settings.smtp_use_tls,
            )
        except aiosmtplib.SMTPException as e:
            raise MailerError(f"failed to send email: {e}") from e

        logger.info("email_sent", template=template_key)
