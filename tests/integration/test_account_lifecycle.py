"""ABOUTME: Integration tests for the account lifecycle services against SQLite
ABOUTME: Signs up, confirms, changes email and resets passwords through real units of work"""

from datetime import UTC, datetime, timedelta

import pytest

from accountdesk.service_layer import email_confirmation_service, password_reset_service, user_service
from accountdesk.service_layer.exceptions import InvalidResetToken, ValidationError
from accountdesk.service_layer.mailer import AccountMailer
from accountdesk.service_layer.unit_of_work import SqlAlchemyUnitOfWork
from tests.fakes import FakeEmailAdapter, FakeMailContext, PlainPasswordHasher

HASHER = PlainPasswordHasher()


@pytest.fixture
def email_adapter():
    return FakeEmailAdapter()


@pytest.fixture
def mailer(email_adapter):
    return AccountMailer(email_adapter, from_email="no-reply@example.com", mail_context=FakeMailContext())


@pytest.fixture
def new_uow(sqlite_session_factory):
    def _new_uow():
        return SqlAlchemyUnitOfWork(sqlite_session_factory)

    return _new_uow


def sign_up(new_uow, email: str, password: str = "secret"):  # noqa: S107
    return user_service.create_user(new_uow(), email=email, password=password, password_hasher=HASHER)


def test_sign_up_stores_lowercase_email(new_uow):
    sign_up(new_uow, "Mixed.Case@Example.com")

    with new_uow() as uow:
        assert uow.users.get_by_email("mixed.case@example.com") is not None


def test_second_sign_up_differing_by_case_fails(new_uow):
    sign_up(new_uow, "someone@example.com")

    with pytest.raises(ValidationError) as exc_info:
        sign_up(new_uow, "SOMEONE@example.com")

    assert exc_info.value.errors == {"email": ["has already been taken"]}


def test_confirmation_round_trip(new_uow, mailer):
    user = sign_up(new_uow, "someone@example.com")
    sent = email_confirmation_service.send_confirmation_email(new_uow(), mailer, user.id)

    confirmed = email_confirmation_service.confirm_user_with_token(new_uow(), sent.confirmation_token)

    assert confirmed.is_confirmed()
    with new_uow() as uow:
        stored = uow.users.get(user.id)
        assert stored.confirmed_at is not None
        assert stored.confirmation_token == sent.confirmation_token


def test_resending_replaces_the_token(new_uow, mailer):
    user = sign_up(new_uow, "someone@example.com")
    first = email_confirmation_service.send_confirmation_email(new_uow(), mailer, user.id)
    second = email_confirmation_service.send_confirmation_email(new_uow(), mailer, user.id)

    assert first.confirmation_token != second.confirmation_token
    with new_uow() as uow:
        assert uow.users.get_by_confirmation_token(first.confirmation_token) is None
        assert uow.users.get_by_confirmation_token(second.confirmation_token).id == user.id


def test_email_change_is_confirmed_then_applied(new_uow, mailer, email_adapter):
    user = sign_up(new_uow, "old@example.com")
    email_confirmation_service.confirm_user(new_uow(), user.id)

    user_service.update_account(
        new_uow(), user.id, current_password="secret", unconfirmed_email="New@Example.com", password_hasher=HASHER
    )
    sent = email_confirmation_service.send_confirmation_email(new_uow(), mailer, user.id)
    assert email_adapter.sent_emails[-1]["to"] == ["new@example.com"]

    confirmed = email_confirmation_service.confirm_user_with_token(new_uow(), sent.confirmation_token)

    assert confirmed.email == "new@example.com"
    assert confirmed.unconfirmed_email is None
    with new_uow() as uow:
        assert uow.users.get_by_email("old@example.com") is None


def test_pending_email_taken_before_confirmation(new_uow, mailer):
    user = sign_up(new_uow, "old@example.com")
    email_confirmation_service.confirm_user(new_uow(), user.id)
    user_service.update_account(
        new_uow(), user.id, current_password="secret", unconfirmed_email="wanted@example.com", password_hasher=HASHER
    )
    # someone else signs up with the address in the meantime
    sign_up(new_uow, "wanted@example.com")
    later = datetime(2025, 6, 1, 9, 30, 0, tzinfo=UTC)

    with pytest.raises(ValidationError) as exc_info:
        email_confirmation_service.confirm_user(new_uow(), user.id, now=later)

    assert exc_info.value.errors == {"email": ["has already been taken"]}
    with new_uow() as uow:
        stored = uow.users.get(user.id)
        assert stored.confirmed_at == later
        assert stored.email == "old@example.com"
        assert stored.unconfirmed_email == "wanted@example.com"


def test_unconfirmed_user_is_confirmed_even_when_pending_email_is_taken(new_uow, mailer):
    user = sign_up(new_uow, "old@example.com")
    with new_uow() as uow:
        uow.users.update_columns(uow.users.get(user.id), unconfirmed_email="wanted@example.com")
    sign_up(new_uow, "wanted@example.com")

    with pytest.raises(ValidationError):
        email_confirmation_service.confirm_user(new_uow(), user.id)

    with new_uow() as uow:
        stored = uow.users.get(user.id)
        assert stored.is_confirmed()
        assert stored.email == "old@example.com"
        assert stored.unconfirmed_email == "wanted@example.com"


def test_password_reset_round_trip(new_uow, mailer):
    user = sign_up(new_uow, "someone@example.com", password="old-password")
    email_confirmation_service.confirm_user(new_uow(), user.id)

    assert password_reset_service.request_password_reset(new_uow(), mailer, "someone@example.com")
    with new_uow() as uow:
        token = uow.users.get(user.id).password_reset_token

    password_reset_service.reset_password_with_token(
        new_uow(), token, "new-password", "new-password", password_hasher=HASHER
    )

    authenticated = user_service.authenticate_user(
        new_uow(), "someone@example.com", "new-password", password_hasher=HASHER
    )
    assert authenticated.id == user.id


def test_expired_reset_link_is_refused(new_uow, mailer):
    user = sign_up(new_uow, "someone@example.com")
    email_confirmation_service.confirm_user(new_uow(), user.id)
    sent_at = datetime.now(UTC) - timedelta(minutes=10)
    sent = password_reset_service.send_password_reset_email(new_uow(), mailer, user.id, now=sent_at)

    with pytest.raises(InvalidResetToken):
        password_reset_service.get_user_for_reset_token(new_uow(), sent.password_reset_token)
