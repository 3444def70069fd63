"""ABOUTME: User management service layer with business logic for user operations
ABOUTME: Handles sign up, the validating save path, authentication and account updates"""

import logging
import uuid

from accountdesk.domain.users import User, normalize_user, validate_user
from accountdesk.domain.value_objects import FieldError

from .exceptions import InvalidCredentials, UniqueConstraintViolation, UserNotFoundError, ValidationError
from .repositories import UserRepository
from .security import PasswordHasher, WerkzeugPasswordHasher, validate_password_fields
from .unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


def check_availability(users: UserRepository, user: User) -> list[FieldError]:
    """
    Check `email` is unique and `unconfirmed_email` is not somebody's email.

    Expects a normalized user. This is a read-then-decide check: two requests
    racing for the same pending address can both pass it.
    """
    errors: list[FieldError] = []
    if user.email:
        existing = users.get_by_email(user.email)
        if existing is not None and existing.id != user.id:
            errors.append(FieldError("email", "has already been taken"))
    if user.unconfirmed_email:
        if users.get_by_email(user.unconfirmed_email.lower()) is not None:
            errors.append(FieldError("unconfirmed_email", "is already in use."))
    return errors


def save_user(uow: AbstractUnitOfWork, user: User, extra_errors: list[FieldError] | None = None) -> None:
    """
    Normalize, validate and stage a user for writing.

    This is the validating save path. Every failing field is collected before
    raising. The caller commits.

    Raises:
        ValidationError: If any field is invalid
    """
    normalize_user(user)
    errors = list(extra_errors or [])
    errors += validate_user(user)
    errors += check_availability(uow.users, user)
    if errors:
        raise ValidationError.from_field_errors(errors)
    uow.users.add(user)


def commit_user(uow: AbstractUnitOfWork) -> None:
    """Commit, reporting a lost race on the unique email as a validation error."""
    try:
        uow.commit()
    except UniqueConstraintViolation as e:
        raise ValidationError({"email": ["has already been taken"]}) from e


def create_user(
    uow: AbstractUnitOfWork,
    email: str,
    password: str,
    password_confirmation: str | None = None,
    password_hasher: PasswordHasher | None = None,
) -> User:
    """
    Create a new user with proper validation.

    Args:
        uow: Unit of Work for database operations
        email: User's email address, stored lowercased
        password: Plain text password (will be hashed)
        password_confirmation: Must match password when given
        password_hasher: Hashing capability, werkzeug by default

    Returns:
        Created User instance (detached)

    Raises:
        ValidationError: With every failing field
    """
    hasher = password_hasher or WerkzeugPasswordHasher()
    password_errors = validate_password_fields(password, password_confirmation, required=True)

    with uow:
        user = User(email=email or "", password_hash=hasher.hash(password) if password else "")
        save_user(uow, user, extra_errors=password_errors)

        detached_user = user.create_detached_copy()
        commit_user(uow)

    logger.info(f"Created user {detached_user.id}")
    return detached_user


def authenticate_user(
    uow: AbstractUnitOfWork,
    email: str,
    password: str,
    password_hasher: PasswordHasher | None = None,
) -> User:
    """
    Authenticate a user with email and password.

    Confirmation state is not checked here. The caller decides what an
    unconfirmed user may do.

    Raises:
        InvalidCredentials: If authentication fails
    """
    hasher = password_hasher or WerkzeugPasswordHasher()
    with uow:
        user = uow.users.get_by_email((email or "").strip().lower())

        if not user or not user.password_hash or not hasher.verify(password, user.password_hash):
            raise InvalidCredentials()

        return user.create_detached_copy()


def get_user(uow: AbstractUnitOfWork, user_id: uuid.UUID) -> User:
    """
    Raises:
        UserNotFoundError: If no user has that id
    """
    with uow:
        user = uow.users.get(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user.create_detached_copy()


def get_user_by_email(uow: AbstractUnitOfWork, email: str) -> User | None:
    with uow:
        user = uow.users.get_by_email((email or "").strip().lower())
        return user.create_detached_copy() if user else None


def list_users(uow: AbstractUnitOfWork) -> list[User]:
    with uow:
        return [user.create_detached_copy() for user in uow.users.all()]


def update_account(
    uow: AbstractUnitOfWork,
    user_id: uuid.UUID,
    current_password: str,
    unconfirmed_email: str | None = None,
    password: str | None = None,
    password_confirmation: str | None = None,
    password_hasher: PasswordHasher | None = None,
) -> tuple[User, bool]:
    """
    Change the password and/or request an email change for a signed-in user.

    A new email is not applied directly. It is stored as `unconfirmed_email` and
    only becomes the account email once confirmed.

    Returns:
        Tuple of (updated user, whether a new email is waiting for confirmation)

    Raises:
        UserNotFoundError: If the user no longer exists
        InvalidCredentials: If current_password is wrong
        ValidationError: If the new values are invalid
    """
    hasher = password_hasher or WerkzeugPasswordHasher()
    with uow:
        user = uow.users.get(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")

        if not hasher.verify(current_password or "", user.password_hash):
            raise InvalidCredentials("Incorrect password.")

        password_errors = validate_password_fields(password, password_confirmation, required=False)
        if password and not password_errors:
            user.password_hash = hasher.hash(password)

        reconfirming = bool(unconfirmed_email and unconfirmed_email.strip())
        if reconfirming:
            user.unconfirmed_email = unconfirmed_email

        save_user(uow, user, extra_errors=password_errors)

        detached_user = user.create_detached_copy()
        commit_user(uow)

    return detached_user, reconfirming


def delete_user(uow: AbstractUnitOfWork, user_id: uuid.UUID) -> None:
    """
    Raises:
        UserNotFoundError: If no user has that id
    """
    with uow:
        user = uow.users.get(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        uow.users.delete(user)
        uow.commit()

    logger.info(f"Deleted user {user_id}")
