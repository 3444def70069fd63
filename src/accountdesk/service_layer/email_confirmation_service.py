"""ABOUTME: Email confirmation service layer for managing email verification
ABOUTME: Handles confirmation token issue, sending, and confirming new or changed addresses"""

import logging
import uuid
from datetime import UTC, datetime

from accountdesk.domain.users import User

from .exceptions import InvalidConfirmationToken, UserNotFoundError, ValidationError
from .mailer import AccountMailer
from .security import SecureTokenGenerator, TokenGenerator
from .unit_of_work import AbstractUnitOfWork
from .user_service import commit_user, save_user

logger = logging.getLogger(__name__)


def send_confirmation_email(
    uow: AbstractUnitOfWork,
    mailer: AccountMailer,
    user_id: uuid.UUID,
    token_generator: TokenGenerator | None = None,
    now: datetime | None = None,
) -> User:
    """
    Issue a fresh confirmation token and email it to the user's confirmable address.

    The token and its sent-at time are written together with update_columns,
    so no validation runs. They are committed before the email goes out, and
    a delivery failure does not undo them.

    Args:
        uow: Unit of Work for database operations
        mailer: Mailer used to deliver the confirmation email
        user_id: ID of the user to confirm
        token_generator: Source of new tokens, secrets-based by default
        now: Time to record as the sent-at time, defaults to the current time

    Returns:
        The updated user (detached)

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
            confirmation_token=generator.generate(),
            confirmation_sent_at=now or datetime.now(UTC),
        )
        detached_user = user.create_detached_copy()
        uow.commit()

    mailer.deliver_confirmation(detached_user)
    return detached_user


def request_confirmation_email(
    uow: AbstractUnitOfWork,
    mailer: AccountMailer,
    email: str,
    token_generator: TokenGenerator | None = None,
) -> bool:
    """
    Resend confirmation instructions to an unconfirmed user.

    Returns:
        True if an email was sent, False if no unconfirmed user has that address
    """
    with uow:
        user = uow.users.get_by_email((email or "").strip().lower())
        if not user or not user.is_unconfirmed():
            return False
        user_id = user.id

    send_confirmation_email(uow, mailer, user_id, token_generator=token_generator)
    return True


def confirm_user(uow: AbstractUnitOfWork, user_id: uuid.UUID, now: datetime | None = None) -> User:
    """
    Confirm a user's email.

    A pending email change is promoted first, through the validating save path.
    If the promotion fails, `email` and `unconfirmed_email` stay as stored.
    Either way `confirmed_at` is then stamped with update_columns, which skips
    validation.

    Raises:
        UserNotFoundError: If no user has that id
        ValidationError: If the pending email can no longer be used. Raised
            after `confirmed_at` has been written.
    """
    promotion_error: ValidationError | None = None
    with uow:
        user = uow.users.get(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")

        if user.is_reconfirming():
            stored_email, pending_email = user.email, user.unconfirmed_email
            user.apply_reconfirmation()
            try:
                save_user(uow, user)
                commit_user(uow)
            except ValidationError as e:
                uow.rollback()
                user.email, user.unconfirmed_email = stored_email, pending_email
                promotion_error = e

        uow.users.update_columns(user, confirmed_at=now or datetime.now(UTC))
        detached_user = user.create_detached_copy()
        uow.commit()

    if promotion_error is not None:
        logger.info(f"Confirmed user {detached_user.id} but kept the old email: {promotion_error}")
        raise promotion_error

    logger.info(f"Confirmed email for user {detached_user.id}")
    return detached_user


def confirm_user_with_token(uow: AbstractUnitOfWork, token_string: str, now: datetime | None = None) -> User:
    """
    Confirm the user holding a confirmation token.

    Raises:
        InvalidConfirmationToken: If the token is unknown or expired, or there is nothing to confirm
        ValidationError: If the pending email can no longer be used
    """
    now = now or datetime.now(UTC)
    with uow:
        user = uow.users.get_by_confirmation_token(token_string) if token_string else None

        if not user:
            raise InvalidConfirmationToken("Token not found")

        if not user.confirmation_token_is_valid(now):
            raise InvalidConfirmationToken("Token has expired")

        if not user.is_unconfirmed_or_reconfirming():
            raise InvalidConfirmationToken("Email already confirmed")

        user_id = user.id

    return confirm_user(uow, user_id, now=now)
