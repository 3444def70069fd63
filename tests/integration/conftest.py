import pytest


@pytest.fixture
def sqlite_session(sqlite_session_factory):
    session = sqlite_session_factory()

    yield session

    session.rollback()
    session.close()
