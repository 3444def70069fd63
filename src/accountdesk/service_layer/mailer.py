"""ABOUTME: Account mailer that composes and delivers confirmation and password reset emails
ABOUTME: Delivery is synchronous and any failure is raised to the caller as DeliveryError"""

import logging

from accountdesk.adapters.email import EmailAdapter
from accountdesk.adapters.mail_context import MailContext
from accountdesk.domain.users import User
from accountdesk.domain.value_objects import CONFIRMATION_TOKEN_EXPIRATION, PASSWORD_RESET_TOKEN_EXPIRATION
from accountdesk.translations import gettext as _

from .exceptions import DeliveryError

logger = logging.getLogger(__name__)


class AccountMailer:
    """Sends the account lifecycle emails from a configured sender address."""

    def __init__(self, email_adapter: EmailAdapter, from_email: str, mail_context: MailContext) -> None:
        self.email_adapter = email_adapter
        self.from_email = from_email
        self.mail_context = mail_context

    def deliver_confirmation(self, user: User) -> None:
        """
        Send the confirmation link to the address waiting to be confirmed.

        Raises:
            DeliveryError: If the email could not be sent
        """
        if not user.confirmation_token:
            raise DeliveryError("Cannot send a confirmation email without a confirmation token")

        confirmation_url = self.mail_context.external_url("confirmations.edit", token=user.confirmation_token)
        self._deliver(
            to=user.confirmable_email,
            subject=_("Confirmation Instructions"),
            template="emails/confirmation",
            email_address=user.confirmable_email,
            confirmation_url=confirmation_url,
            expiry_minutes=int(CONFIRMATION_TOKEN_EXPIRATION.total_seconds() // 60),
        )

    def deliver_password_reset(self, user: User) -> None:
        """
        Send the password reset link to the account email.

        Raises:
            DeliveryError: If the email could not be sent
        """
        if not user.password_reset_token:
            raise DeliveryError("Cannot send a password reset email without a reset token")

        reset_url = self.mail_context.external_url("passwords.edit", token=user.password_reset_token)
        self._deliver(
            to=user.email,
            subject=_("Password Reset Instructions"),
            template="emails/password_reset",
            email_address=user.email,
            reset_url=reset_url,
            expiry_minutes=int(PASSWORD_RESET_TOKEN_EXPIRATION.total_seconds() // 60),
        )

    def _deliver(self, to: str, subject: str, template: str, **context: object) -> None:
        text_body = self.mail_context.render(f"{template}.txt", **context)
        html_body = self.mail_context.render(f"{template}.html", **context)

        try:
            sent = self.email_adapter.send_email(
                to=[to],
                subject=subject,
                text_body=text_body,
                html_body=html_body,
                from_email=self.from_email,
            )
        except Exception as e:
            logger.error(f"Error sending '{subject}' to {to}: {e}")
            raise DeliveryError(f"Could not deliver '{subject}' to {to}") from e

        if not sent:
            logger.error(f"Failed to send '{subject}' to {to}")
            raise DeliveryError(f"Could not deliver '{subject}' to {to}")

        logger.info(f"Sent '{subject}' to {to}")
