"""ABOUTME: Password reset service layer for managing password recovery
ABOUTME: Handles reset token issue, sending, validation, and password updates"""

import logging
import uuid
from datetime import UTC, datetime

from accountdesk.domain.users import User

from .exceptions import EmailNotConfirmed, InvalidResetToken, UserNotFoundError
from .mailer import AccountMailer
from .security import (
    PasswordHasher,
    SecureTokenGenerator,
    TokenGenerator,
    WerkzeugPasswordHasher,
    validate_password_fields,
)
from .unit_of_work import AbstractUnitOfWork
from .user_service import commit_user, save_user

logger = logging.getLogger(__name__)


def send_password_reset_email(
    uow: AbstractUnitOfWork,
    mailer: AccountMailer,
    user_id: uuid.UUID,
    token_generator: TokenGenerator | None = None,
    now: datetime | None = None,
) -> User:
    """
    Issue a fresh password reset token and email it to the user.

    The token and its sent-at time are written together with update_columns
    and committed before delivery.

    Raises:
        UserNotFoundError: If no user has that id
        DeliveryError: If the email could not be delivered
    """
    generator = token_generator or SecureTokenGenerator()
    with uow:
        user = uow.users.get(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")

        uow.users.update_columns(
            user,
            password_reset_token=generator.generate(),
            password_reset_sent_at=now or datetime.now(UTC),
        )
        detached_user = user.create_detached_copy()
        uow.commit()

    mailer.deliver_password_reset(detached_user)
    return detached_user


def request_password_reset(
    uow: AbstractUnitOfWork,
    mailer: AccountMailer,
    email: str,
    token_generator: TokenGenerator | None = None,
) -> bool:
    """
    Send reset instructions if a confirmed user has this email.

    An unknown address is not an error, so callers can answer the same way
    whether or not the account exists.

    Returns:
        True if an email was sent, False if no user has that address

    Raises:
        EmailNotConfirmed: If the user has not confirmed their email yet
        DeliveryError: If the email could not be delivered
    """
    with uow:
        user = uow.users.get_by_email((email or "").strip().lower())
        if not user:
            return False
        if user.is_unconfirmed():
            raise EmailNotConfirmed(user.email)
        user_id = user.id

    send_password_reset_email(uow, mailer, user_id, token_generator=token_generator)
    return True


def _get_resettable_user(uow: AbstractUnitOfWork, token_string: str, now: datetime) -> User:
    user = uow.users.get_by_password_reset_token(token_string) if token_string else None
    if not user:
        raise InvalidResetToken("Token not found")
    if user.is_unconfirmed():
        raise EmailNotConfirmed(user.email)
    if user.password_reset_token_has_expired(now):
        raise InvalidResetToken("Token has expired")
    return user


def get_user_for_reset_token(uow: AbstractUnitOfWork, token_string: str, now: datetime | None = None) -> User:
    """
    Look up the user a reset link belongs to, checking the link can still be used.

    Raises:
        InvalidResetToken: If the token is unknown or expired
        EmailNotConfirmed: If the user has not confirmed their email yet
    """
    with uow:
        user = _get_resettable_user(uow, token_string, now or datetime.now(UTC))
        return user.create_detached_copy()


def reset_password_with_token(
    uow: AbstractUnitOfWork,
    token_string: str,
    new_password: str,
    password_confirmation: str | None = None,
    password_hasher: PasswordHasher | None = None,
    now: datetime | None = None,
) -> User:
    """
    Reset a user's password using a reset token.

    The token is left in place. It stops working once it expires or a new
    one is issued.

    Raises:
        InvalidResetToken: If the token is unknown or expired
        EmailNotConfirmed: If the user has not confirmed their email yet
        ValidationError: If the new password is blank, too long or not confirmed
    """
    hasher = password_hasher or WerkzeugPasswordHasher()
    with uow:
        user = _get_resettable_user(uow, token_string, now or datetime.now(UTC))

        password_errors = validate_password_fields(new_password, password_confirmation, required=True)
        if not password_errors:
            user.password_hash = hasher.hash(new_password)
        save_user(uow, user, extra_errors=password_errors)

        detached_user = user.create_detached_copy()
        commit_user(uow)

    logger.info(f"Password reset for user {detached_user.id}")
    return detached_user
