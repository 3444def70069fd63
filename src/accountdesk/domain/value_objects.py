"""ABOUTME: Value objects and validation helpers for accountdesk domain models
ABOUTME: Defines the email format rule, field errors and token lifetimes"""

import re
from dataclasses import dataclass
from datetime import timedelta

from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator

VALID_EMAIL_REGEX = r"^[\w+\-.]+@[a-z\d\-.]+\.[a-z]+\Z"

CONFIRMATION_TOKEN_EXPIRATION = timedelta(minutes=10)
PASSWORD_RESET_TOKEN_EXPIRATION = timedelta(minutes=10)

# measured in bytes of the UTF-8 encoding
MAX_PASSWORD_LENGTH = 72


@dataclass(frozen=True, slots=True)
class FieldError:
    """A single validation failure attached to a named field."""

    field: str
    message: str

    def full_message(self) -> str:
        """Human readable message, e.g. 'Email is invalid'."""
        return f"{humanize_field(self.field)} {self.message}"


def humanize_field(field: str) -> str:
    return field.replace("_", " ").capitalize()


def is_valid_email(email: str | None) -> bool:
    """Check an address against the account email format."""
    # Passing in the message keeps django from reaching for its translation
    # machinery, which would need configured settings.
    validator = RegexValidator(
        regex=VALID_EMAIL_REGEX,
        flags=re.IGNORECASE | re.ASCII,
        message="Invalid email address",
    )
    try:
        validator(email or "")
    except ValidationError:
        return False
    return True


def validate_email(email: str) -> None:
    """Raise ValueError if the email does not match the account email format."""
    if not is_valid_email(email):
        raise ValueError("Invalid email address")
