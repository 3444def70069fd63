"""ABOUTME: Custom exceptions for service layer operations
ABOUTME: Defines business logic exceptions with proper error messages"""

from collections.abc import Iterable

from accountdesk.domain.value_objects import FieldError, humanize_field
from accountdesk.translations import gettext as _


class AccountDeskError(Exception):
    """Base exception for all our custom errors."""


class ServiceLayerError(AccountDeskError):
    """Base exception for all service layer errors."""


class ValidationError(ServiceLayerError):
    """Raised when a user fails validation. Carries every failing field, not just the first."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        super().__init__("; ".join(self.full_messages()) or "Validation failed")

    @classmethod
    def from_field_errors(cls, field_errors: Iterable[FieldError]) -> "ValidationError":
        errors: dict[str, list[str]] = {}
        for error in field_errors:
            errors.setdefault(error.field, []).append(error.message)
        return cls(errors)

    def full_messages(self) -> list[str]:
        return [f"{humanize_field(field)} {message}" for field, messages in self.errors.items() for message in messages]


class UniqueConstraintViolation(ServiceLayerError):
    """Raised when the database rejects a write because of a unique constraint."""


class InvalidCredentials(ServiceLayerError):
    """Raised when authentication fails due to invalid credentials."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or _("Incorrect email or password."))


class EmailNotConfirmed(ServiceLayerError):
    """Raised when an operation needs a confirmed email address."""

    def __init__(self, email: str = "") -> None:
        super().__init__(_("You must confirm your email before you can continue."))
        self.email = email


class InvalidConfirmationToken(ServiceLayerError):
    """Raised when a confirmation token is unknown, expired or has nothing left to confirm."""

    def __init__(self, reason: str = "") -> None:
        message = f"Invalid confirmation token: {reason}" if reason else "Invalid confirmation token"
        super().__init__(message)
        self.reason = reason


class InvalidResetToken(ServiceLayerError):
    """Raised when a password reset token is unknown or expired."""

    def __init__(self, reason: str = "") -> None:
        message = f"Invalid password reset token: {reason}" if reason else "Invalid password reset token"
        super().__init__(message)
        self.reason = reason


class DeliveryError(ServiceLayerError):
    """Raised when an email could not be handed over for delivery."""


class NotFoundError(ServiceLayerError):
    """General error to indicate something cannot be found in a repository"""


class UserNotFoundError(NotFoundError):
    """A user could not be found in the database"""
