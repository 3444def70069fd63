"""Domain models for accountdesk."""

from .users import User, normalize_user, validate_user
from .value_objects import FieldError

__all__ = ["FieldError", "User", "normalize_user", "validate_user"]
