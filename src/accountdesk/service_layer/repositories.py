"""ABOUTME: Abstract repository interfaces for domain objects
ABOUTME: Defines repository contracts to abstract database operations from business logic"""

from __future__ import annotations

import abc
import uuid
from collections.abc import Iterable
from typing import Any

from accountdesk.domain.users import User


class AbstractRepository(abc.ABC):
    """Base repository interface providing common operations."""

    @abc.abstractmethod
    def add(self, item: Any) -> None:
        """Add an item to the repository."""
        raise NotImplementedError

    @abc.abstractmethod
    def get(self, item_id: uuid.UUID) -> Any | None:
        """Get an item by its ID."""
        raise NotImplementedError

    @abc.abstractmethod
    def all(self) -> Iterable[Any]:
        """List all items in the repository."""
        raise NotImplementedError

    @abc.abstractmethod
    def delete(self, item: Any) -> None:
        """Remove an item from the repository."""
        raise NotImplementedError


class UserRepository(AbstractRepository):
    """Repository interface for User domain objects."""

    @abc.abstractmethod
    def get_by_email(self, email: str) -> User | None:
        """Get a user by their (already lowercased) email address."""
        raise NotImplementedError

    @abc.abstractmethod
    def get_by_confirmation_token(self, token: str) -> User | None:
        """Get the user holding the given confirmation token."""
        raise NotImplementedError

    @abc.abstractmethod
    def get_by_password_reset_token(self, token: str) -> User | None:
        """Get the user holding the given password reset token."""
        raise NotImplementedError

    @abc.abstractmethod
    def update_columns(self, user: User, **values: Any) -> None:
        """
        Write the named columns straight to storage.

        No normalization or validation happens here. The in-memory user is
        updated to match.
        """
        raise NotImplementedError
