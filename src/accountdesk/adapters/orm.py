"""ABOUTME: SQLAlchemy table definitions and imperative mapping for accountdesk
ABOUTME: Defines the users table with cross-database UUID and timezone-aware columns"""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import TIMESTAMP, Column, Index, String, Table, TypeDecorator
from sqlalchemy.dialects.postgresql import UUID as PostgresUUID
from sqlalchemy.engine.interfaces import Dialect
from sqlalchemy.orm import registry
from sqlalchemy.sql.sqltypes import String as SQLString


def aware_utcnow() -> datetime:  # pragma: no cover
    return datetime.now(UTC)


class TZAwareDatetime(TypeDecorator):
    """Custom type for timezone-aware datetime objects."""

    impl = TIMESTAMP
    cache_ok = True

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        # Ensure timezone=True for PostgreSQL
        kwargs.setdefault("timezone", True)
        super().__init__(*args, **kwargs)

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime | None:
        if value is None:
            return value

        # SQLite hands back naive values, they were written as UTC
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=UTC)

        return value


class CrossDatabaseUUID(TypeDecorator):
    """Cross-database UUID type that works with both PostgreSQL and SQLite."""

    impl = SQLString
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PostgresUUID(as_uuid=True))
        # For SQLite and other databases, use CHAR(36) to store UUID as string
        return dialect.type_descriptor(SQLString(36))

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return value

        if isinstance(value, uuid.UUID):
            return str(value)
        elif isinstance(value, str):
            try:
                uuid.UUID(value)
                return value
            except ValueError as e:
                raise ValueError(f"Invalid UUID string: {value}") from e
        else:
            raise TypeError(f"Expected UUID or string, got {type(value)}")

    def process_result_value(self, value: Any, dialect: Dialect) -> uuid.UUID | None:
        if value is None:
            return value

        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


# Create a registry for imperative mapping
mapper_registry = registry()
metadata = mapper_registry.metadata

users = Table(
    "users",
    metadata,
    Column("id", CrossDatabaseUUID(), primary_key=True, default=uuid.uuid4),
    Column("email", String(255), nullable=False, unique=True),
    # no unique constraint here, availability is checked when saving
    Column("unconfirmed_email", String(255), nullable=True),
    Column("password_hash", String(255), nullable=False),
    Column("confirmed_at", TZAwareDatetime(), nullable=True),
    Column("confirmation_token", String(255), nullable=True),
    Column("confirmation_sent_at", TZAwareDatetime(), nullable=True),
    Column("password_reset_token", String(255), nullable=True),
    Column("password_reset_sent_at", TZAwareDatetime(), nullable=True),
    Column("created_at", TZAwareDatetime(), nullable=False, default=aware_utcnow),
)

Index("ix_users_confirmation_token", users.c.confirmation_token, unique=True)
Index("ix_users_password_reset_token", users.c.password_reset_token, unique=True)
