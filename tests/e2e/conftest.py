from datetime import UTC, datetime

import pytest

from accountdesk.entrypoints.flask_app import create_app
from accountdesk.service_layer.unit_of_work import SqlAlchemyUnitOfWork
from accountdesk.service_layer.user_service import create_user
from tests.e2e.helpers import PASSWORD
from tests.fakes import FakeEmailAdapter


@pytest.fixture
def email_adapter():
    return FakeEmailAdapter()


@pytest.fixture
def app(sqlite_session_factory, email_adapter):
    """Create test Flask application."""
    return create_app("testing", session_factory=sqlite_session_factory, email_adapter=email_adapter)


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def new_uow(sqlite_session_factory):
    def _new_uow():
        return SqlAlchemyUnitOfWork(sqlite_session_factory)

    return _new_uow


@pytest.fixture
def unconfirmed_user(new_uow):
    return create_user(new_uow(), email="unconfirmed_user@example.com", password=PASSWORD, password_confirmation=PASSWORD)


@pytest.fixture
def confirmed_user(new_uow):
    user = create_user(new_uow(), email="confirmed_user@example.com", password=PASSWORD, password_confirmation=PASSWORD)
    with new_uow() as uow:
        stored = uow.users.get(user.id)
        uow.users.update_columns(stored, confirmed_at=datetime.now(UTC))
        uow.commit()
        return stored.create_detached_copy()


@pytest.fixture
def stored_user(new_uow):
    """Look a user up by email in a fresh unit of work, as a detached copy."""

    def _stored_user(email: str):
        with new_uow() as uow:
            user = uow.users.get_by_email(email)
            return user.create_detached_copy() if user else None

    return _stored_user


@pytest.fixture
def set_columns(new_uow):
    """Write columns straight to the database, skipping validation."""

    def _set_columns(user_id, **values):
        with new_uow() as uow:
            uow.users.update_columns(uow.users.get(user_id), **values)
            uow.commit()

    return _set_columns
