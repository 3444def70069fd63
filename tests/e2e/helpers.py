from flask.testing import FlaskClient

from accountdesk.domain.users import User

PASSWORD = "password"  # noqa: S105


def login(client: FlaskClient, user: User, password: str = PASSWORD):
    return client.post("/login", data={"email": user.email, "password": password})


def current_user_id(client: FlaskClient) -> str | None:
    with client.session_transaction() as session:
        return session.get("_user_id")


def flashes(client: FlaskClient) -> list[tuple[str, str]]:
    with client.session_transaction() as session:
        return [tuple(flash) for flash in session.get("_flashes", [])]
