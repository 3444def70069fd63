"""ABOUTME: Unit of Work that scopes one database session and its user repository
ABOUTME: Leaving the block commits, an exception rolls back, and a rejected unique key becomes a service error"""

from __future__ import annotations

import abc
from types import TracebackType

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from accountdesk.adapters.database import create_session_factory
from accountdesk.adapters.sql_repository import SqlAlchemyUserRepository
from accountdesk.service_layer.exceptions import UniqueConstraintViolation
from accountdesk.service_layer.repositories import UserRepository


class AbstractUnitOfWork(abc.ABC):
    users: UserRepository

    def __enter__(self) -> AbstractUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abc.abstractmethod
    def commit(self) -> None:
        """
        Raises:
            UniqueConstraintViolation: If the database rejects the write
        """
        raise NotImplementedError

    @abc.abstractmethod
    def rollback(self) -> None:
        raise NotImplementedError


_default_session_factory: sessionmaker | None = None


def get_default_session_factory() -> sessionmaker:
    """Session factory for the configured database, created on first use."""
    global _default_session_factory
    if _default_session_factory is None:
        _default_session_factory = create_session_factory()
    return _default_session_factory


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    One session per `with` block. The session is opened lazily and closed on exit,
    so an instance can be entered again for a second transaction.
    """

    def __init__(self, session_factory: sessionmaker | None = None) -> None:
        self.session_factory = session_factory or get_default_session_factory()
        self._session: Session | None = None

    @property
    def session(self) -> Session:
        if self._session is None:
            self._session = self.session_factory()
        assert isinstance(self._session, Session)
        return self._session

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self.users = SqlAlchemyUserRepository(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            super().__exit__(exc_type, exc_val, exc_tb)
        finally:
            if self._session is not None:
                self._session.close()
            self._session = None

    def commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise UniqueConstraintViolation(str(e.orig)) from e

    def rollback(self) -> None:
        self.session.rollback()

    def flush(self) -> None:
        """Send pending changes without committing, so constraint errors show up early."""
        self.session.flush()
