"""ABOUTME: SQLAlchemy implementations of repository interfaces
ABOUTME: Provides concrete database operations using SQLAlchemy sessions"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from accountdesk.adapters import orm
from accountdesk.domain.users import User
from accountdesk.service_layer.repositories import UserRepository


class SqlAlchemyRepository:
    """Base SQLAlchemy repository with common functionality."""

    def __init__(self, session: Session) -> None:
        self.session = session


class SqlAlchemyUserRepository(SqlAlchemyRepository, UserRepository):
    """SQLAlchemy implementation of UserRepository."""

    def add(self, item: User) -> None:
        """Add a user to the repository."""
        self.session.add(item)

    def get(self, item_id: uuid.UUID) -> User | None:
        """Get a user by their ID."""
        return self.session.query(User).filter_by(id=item_id).first()

    def all(self) -> Iterable[User]:
        """Get all users, oldest first."""
        return self.session.query(User).order_by(orm.users.c.created_at).all()

    def delete(self, item: User) -> None:
        self.session.delete(item)

    def get_by_email(self, email: str) -> User | None:
        """Get a user by their email address."""
        # used while validating pending changes, which must not be flushed yet
        with self.session.no_autoflush:
            return self.session.query(User).filter_by(email=email).first()

    def get_by_confirmation_token(self, token: str) -> User | None:
        return self.session.query(User).filter_by(confirmation_token=token).first()

    def get_by_password_reset_token(self, token: str) -> User | None:
        return self.session.query(User).filter_by(password_reset_token=token).first()

    def update_columns(self, user: User, **values: Any) -> None:
        """Issue a plain UPDATE for the given columns, bypassing the unit of work's change tracking."""
        unknown = set(values) - set(orm.users.c.keys())
        if unknown:
            raise ValueError(f"Unknown columns for users: {', '.join(sorted(unknown))}")

        self.session.execute(update(orm.users).where(orm.users.c.id == user.id).values(**values))
        for key, value in values.items():
            # mark as already persisted so the next flush does not write it again
            set_committed_value(user, key, value)
