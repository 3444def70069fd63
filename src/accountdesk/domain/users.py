"""ABOUTME: User domain model for accountdesk authentication and email confirmation
ABOUTME: Contains the User class plus the pure normalize/validate functions used before saving"""

import uuid
from datetime import UTC, datetime

from .value_objects import (
    CONFIRMATION_TOKEN_EXPIRATION,
    PASSWORD_RESET_TOKEN_EXPIRATION,
    FieldError,
    is_valid_email,
)


class User:
    """User domain model holding identity, confirmation state and token timestamps."""

    def __init__(
        self,
        email: str,
        password_hash: str,
        user_id: uuid.UUID | None = None,
        unconfirmed_email: str | None = None,
        confirmed_at: datetime | None = None,
        confirmation_token: str | None = None,
        confirmation_sent_at: datetime | None = None,
        password_reset_token: str | None = None,
        password_reset_sent_at: datetime | None = None,
        created_at: datetime | None = None,
    ):
        self.id = user_id or uuid.uuid4()
        self.email = email
        self.unconfirmed_email = unconfirmed_email
        self.password_hash = password_hash
        self.confirmed_at = confirmed_at
        self.confirmation_token = confirmation_token
        self.confirmation_sent_at = confirmation_sent_at
        self.password_reset_token = password_reset_token
        self.password_reset_sent_at = password_reset_sent_at
        self.created_at = created_at or datetime.now(UTC)

    # couple of things required for flask_login
    @property
    def is_active(self) -> bool:
        return True

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_anonymous(self) -> bool:
        return False

    def get_id(self) -> str:
        return str(self.id)

    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None

    def is_unconfirmed(self) -> bool:
        return self.confirmed_at is None

    def is_reconfirming(self) -> bool:
        """True while an email change is waiting to be confirmed."""
        return bool(self.unconfirmed_email)

    def is_unconfirmed_or_reconfirming(self) -> bool:
        return self.is_unconfirmed() or self.is_reconfirming()

    @property
    def confirmable_email(self) -> str:
        """The address the next confirmation message should go to."""
        if self.unconfirmed_email:
            return self.unconfirmed_email
        return self.email

    def confirmation_token_is_valid(self, now: datetime | None = None) -> bool:
        """Check the confirmation token was sent no more than 10 minutes ago (inclusive)."""
        if self.confirmation_sent_at is None:
            return False
        now = now or datetime.now(UTC)
        return (now - self.confirmation_sent_at) <= CONFIRMATION_TOKEN_EXPIRATION

    def password_reset_token_has_expired(self, now: datetime | None = None) -> bool:
        """Check if the reset token is 10 or more minutes old. A reset never sent counts as expired."""
        if self.password_reset_sent_at is None:
            return True
        now = now or datetime.now(UTC)
        return (now - self.password_reset_sent_at) >= PASSWORD_RESET_TOKEN_EXPIRATION

    def apply_reconfirmation(self) -> None:
        """Promote the pending email to the account email."""
        if not self.unconfirmed_email:
            return
        self.email = self.unconfirmed_email
        self.unconfirmed_email = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):  # pragma: no cover
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"

    def create_detached_copy(self) -> "User":
        """Create a detached copy of this user for use outside SQLAlchemy sessions"""
        return User(
            email=self.email,
            password_hash=self.password_hash,
            user_id=self.id,
            unconfirmed_email=self.unconfirmed_email,
            confirmed_at=self.confirmed_at,
            confirmation_token=self.confirmation_token,
            confirmation_sent_at=self.confirmation_sent_at,
            password_reset_token=self.password_reset_token,
            password_reset_sent_at=self.password_reset_sent_at,
            created_at=self.created_at,
        )


def normalize_user(user: User) -> User:
    """
    Lowercase the email fields in place. Returns the same user for chaining.

    Whitespace is left alone, so a padded address fails the format check.
    An empty pending email becomes None.
    """
    if user.email is not None:
        user.email = user.email.lower()
    if user.unconfirmed_email is not None:
        user.unconfirmed_email = user.unconfirmed_email.lower() or None
    return user


def validate_user(user: User) -> list[FieldError]:
    """
    Run the format and presence checks that need no database.

    Uniqueness and availability checks live in the service layer, since
    they have to look at other users.
    """
    errors: list[FieldError] = []
    if not user.email:
        errors.append(FieldError("email", "can't be blank"))
    if not is_valid_email(user.email):
        errors.append(FieldError("email", "is invalid"))
    if user.unconfirmed_email and not is_valid_email(user.unconfirmed_email):
        errors.append(FieldError("unconfirmed_email", "is invalid"))
    return errors
