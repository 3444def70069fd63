"""ABOUTME: Security utilities for password hashing and secure token generation
ABOUTME: Provides swappable PasswordHasher and TokenGenerator capabilities plus password field checks"""

import abc
import secrets

from werkzeug.security import check_password_hash, generate_password_hash

from accountdesk.domain.value_objects import MAX_PASSWORD_LENGTH, FieldError


class PasswordHasher(abc.ABC):
    """Turns plaintext into a stored hash and checks plaintext against one."""

    @abc.abstractmethod
    def hash(self, password: str) -> str:
        raise NotImplementedError

    @abc.abstractmethod
    def verify(self, password: str, password_hash: str) -> bool:
        raise NotImplementedError


class WerkzeugPasswordHasher(PasswordHasher):
    """Password hashing using werkzeug's secure method."""

    def hash(self, password: str) -> str:
        return generate_password_hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        return check_password_hash(password_hash, password)


class TokenGenerator(abc.ABC):
    """Produces a fresh opaque, URL-safe token on every call."""

    @abc.abstractmethod
    def generate(self) -> str:
        raise NotImplementedError


class SecureTokenGenerator(TokenGenerator):
    def __init__(self, length: int = 32) -> None:
        self.length = length

    def generate(self) -> str:
        """Generate a cryptographically secure URL-safe token."""
        return secrets.token_urlsafe(self.length)


def validate_password_fields(
    password: str | None,
    password_confirmation: str | None,
    required: bool = True,
) -> list[FieldError]:
    """
    Check a new password and its confirmation.

    When `required` is False an empty password means "leave the password alone"
    and is not an error. A confirmation of None means the caller did not ask for
    one, so it is not compared.
    """
    errors: list[FieldError] = []
    if not password:
        if required:
            errors.append(FieldError("password", "can't be blank"))
        return errors

    if len(password.encode("utf-8")) > MAX_PASSWORD_LENGTH:
        errors.append(FieldError("password", f"is too long (maximum is {MAX_PASSWORD_LENGTH} characters)"))

    if password_confirmation is not None and password_confirmation != password:
        errors.append(FieldError("password_confirmation", "doesn't match Password"))

    return errors
