"""ABOUTME: Unit tests for user service operations
ABOUTME: Covers sign up validation, authentication and account changes against fake repositories"""

from datetime import UTC, datetime

import pytest

from accountdesk.domain.users import User
from accountdesk.service_layer import user_service
from accountdesk.service_layer.exceptions import InvalidCredentials, UserNotFoundError, ValidationError
from tests.fakes import FakeUnitOfWork, PlainPasswordHasher

HASHER = PlainPasswordHasher()


def existing_user(email: str = "a@x.com", password: str = "password", **kwargs) -> User:  # noqa: S107
    return User(email=email, password_hash=HASHER.hash(password), **kwargs)


class TestCreateUser:
    def test_creates_user_with_lowercase_email(self):
        uow = FakeUnitOfWork()

        user = user_service.create_user(
            uow, email="New.User@Example.COM", password="secret", password_confirmation="secret", password_hasher=HASHER
        )

        assert user.email == "new.user@example.com"
        assert user.is_unconfirmed()
        assert user.confirmation_token is None
        assert uow.committed
        stored = uow.users.get_by_email("new.user@example.com")
        assert stored is not None
        assert HASHER.verify("secret", stored.password_hash)

    def test_uses_werkzeug_hashing_by_default(self):
        uow = FakeUnitOfWork()

        user = user_service.create_user(uow, email="someone@example.com", password="secret")

        assert user.password_hash != "secret"
        assert user.password_hash.startswith(("scrypt:", "pbkdf2:"))

    def test_email_differing_only_by_case_is_taken(self):
        uow = FakeUnitOfWork([existing_user("taken@example.com")])

        with pytest.raises(ValidationError) as exc_info:
            user_service.create_user(uow, email="TAKEN@example.com", password="secret", password_hasher=HASHER)

        assert exc_info.value.errors == {"email": ["has already been taken"]}
        assert len(list(uow.users.all())) == 1

    def test_email_with_surrounding_whitespace_is_invalid(self):
        uow = FakeUnitOfWork()

        with pytest.raises(ValidationError) as exc_info:
            user_service.create_user(uow, email=" someone@example.com ", password="secret", password_hasher=HASHER)

        assert exc_info.value.errors == {"email": ["is invalid"]}
        assert list(uow.users.all()) == []

    def test_collects_every_failing_field(self):
        uow = FakeUnitOfWork()

        with pytest.raises(ValidationError) as exc_info:
            user_service.create_user(uow, email="not-an-email", password="", password_hasher=HASHER)

        assert exc_info.value.errors == {"password": ["can't be blank"], "email": ["is invalid"]}
        assert not uow.committed

    def test_password_confirmation_must_match(self):
        uow = FakeUnitOfWork()

        with pytest.raises(ValidationError) as exc_info:
            user_service.create_user(
                uow, email="someone@example.com", password="secret", password_confirmation="other", password_hasher=HASHER
            )

        assert exc_info.value.errors == {"password_confirmation": ["doesn't match Password"]}
        assert "Password confirmation doesn't match Password" in exc_info.value.full_messages()

    def test_password_over_72_bytes_is_too_long(self):
        uow = FakeUnitOfWork()

        with pytest.raises(ValidationError) as exc_info:
            user_service.create_user(uow, email="someone@example.com", password="é" * 37, password_hasher=HASHER)

        assert exc_info.value.errors == {"password": ["is too long (maximum is 72 characters)"]}

    def test_lost_race_on_email_is_reported_as_taken(self):
        other = existing_user("race@example.com")
        uow = FakeUnitOfWork()
        # simulate another request inserting the same email after availability was checked
        original_add = uow.users.add

        def add_then_race(user):
            original_add(user)
            original_add(other)

        uow.users.add = add_then_race

        with pytest.raises(ValidationError) as exc_info:
            user_service.create_user(uow, email="race@example.com", password="secret", password_hasher=HASHER)

        assert exc_info.value.errors == {"email": ["has already been taken"]}


class TestAuthenticateUser:
    def test_accepts_correct_password_with_any_email_case(self):
        user = existing_user("someone@example.com", "secret")
        uow = FakeUnitOfWork([user])

        authenticated = user_service.authenticate_user(uow, "SomeOne@Example.com", "secret", password_hasher=HASHER)

        assert authenticated.id == user.id

    def test_wrong_password(self):
        uow = FakeUnitOfWork([existing_user("someone@example.com", "secret")])

        with pytest.raises(InvalidCredentials, match="Incorrect email or password."):
            user_service.authenticate_user(uow, "someone@example.com", "wrong", password_hasher=HASHER)

    def test_unknown_email(self):
        with pytest.raises(InvalidCredentials):
            user_service.authenticate_user(FakeUnitOfWork(), "nobody@example.com", "secret", password_hasher=HASHER)

    def test_does_not_check_confirmation(self):
        user = existing_user("someone@example.com", "secret")
        uow = FakeUnitOfWork([user])

        authenticated = user_service.authenticate_user(uow, "someone@example.com", "secret", password_hasher=HASHER)

        assert authenticated.is_unconfirmed()


class TestUpdateAccount:
    def test_new_email_waits_for_confirmation(self):
        user = existing_user("b@x.com", "secret", confirmed_at=datetime.now(UTC))
        uow = FakeUnitOfWork([user])

        updated, reconfirming = user_service.update_account(
            uow, user.id, current_password="secret", unconfirmed_email="New@X.com", password_hasher=HASHER
        )

        assert reconfirming
        assert updated.email == "b@x.com"
        assert updated.unconfirmed_email == "new@x.com"
        assert updated.is_confirmed()

    def test_pending_email_already_in_use_with_different_case(self):
        account_a = existing_user("a@x.com")
        account_b = existing_user("b@x.com", "secret")
        uow = FakeUnitOfWork([account_a, account_b])

        with pytest.raises(ValidationError) as exc_info:
            user_service.update_account(
                uow, account_b.id, current_password="secret", unconfirmed_email="A@X.com", password_hasher=HASHER
            )

        assert exc_info.value.errors == {"unconfirmed_email": ["is already in use."]}
        assert not uow.committed

    def test_changes_password(self):
        user = existing_user("b@x.com", "secret")
        uow = FakeUnitOfWork([user])

        updated, reconfirming = user_service.update_account(
            uow,
            user.id,
            current_password="secret",
            password="brand-new",
            password_confirmation="brand-new",
            password_hasher=HASHER,
        )

        assert not reconfirming
        assert HASHER.verify("brand-new", updated.password_hash)

    def test_blank_password_leaves_password_alone(self):
        user = existing_user("b@x.com", "secret")
        uow = FakeUnitOfWork([user])

        updated, _ = user_service.update_account(
            uow, user.id, current_password="secret", password="", password_confirmation="", password_hasher=HASHER
        )

        assert HASHER.verify("secret", updated.password_hash)

    def test_wrong_current_password(self):
        user = existing_user("b@x.com", "secret")
        uow = FakeUnitOfWork([user])

        with pytest.raises(InvalidCredentials, match="Incorrect password."):
            user_service.update_account(
                uow, user.id, current_password="nope", unconfirmed_email="c@x.com", password_hasher=HASHER
            )

        assert user.unconfirmed_email is None

    def test_unknown_user(self):
        with pytest.raises(UserNotFoundError):
            user_service.update_account(FakeUnitOfWork(), User("x@x.com", "").id, current_password="secret")


class TestLookups:
    def test_get_user_returns_detached_copy(self):
        user = existing_user()
        uow = FakeUnitOfWork([user])

        found = user_service.get_user(uow, user.id)

        assert found == user
        assert found is not user

    def test_get_user_by_email_normalizes(self):
        user = existing_user("someone@example.com")
        uow = FakeUnitOfWork([user])

        assert user_service.get_user_by_email(uow, " SOMEONE@example.com ") == user
        assert user_service.get_user_by_email(uow, "nobody@example.com") is None

    def test_delete_user(self):
        user = existing_user()
        uow = FakeUnitOfWork([user])

        user_service.delete_user(uow, user.id)

        assert uow.users.get(user.id) is None
        assert uow.committed
