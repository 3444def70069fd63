"""ABOUTME: Flask extensions initialization and configuration
ABOUTME: Sets up Flask-Login, Flask-Session, Flask-Babel, security headers, CSRF and the account mailer"""

import uuid

from flask import Flask, current_app, has_request_context, request, session
from flask_babel import Babel
from flask_login import LoginManager
from flask_session import Session
from flask_talisman import Talisman
from flask_wtf.csrf import CSRFProtect
from sqlalchemy.orm import sessionmaker

from accountdesk import bootstrap
from accountdesk.adapters.database import create_session_factory
from accountdesk.adapters.email import EmailAdapter, get_email_adapter
from accountdesk.adapters.mail_context import FlaskMailContext
from accountdesk.config import FlaskBaseConfig
from accountdesk.domain.users import User
from accountdesk.service_layer.mailer import AccountMailer
from accountdesk.service_layer.unit_of_work import AbstractUnitOfWork

login_manager = LoginManager()
babel = Babel()
session_store = Session()
talisman = Talisman()
csrf = CSRFProtect()


def init_extensions(
    app: Flask,
    flask_config: FlaskBaseConfig,
    session_factory: sessionmaker | None = None,
    email_adapter: EmailAdapter | None = None,
) -> None:
    """Initialize Flask extensions with app instance."""

    login_manager.init_app(app)
    login_manager.login_view = "auth.login"
    login_manager.login_message = "Please log in to access this page."
    login_manager.login_message_category = "alert"

    session_store.init_app(app)

    babel.init_app(app, locale_selector=get_locale)

    talisman.init_app(
        app,
        force_https=app.config.get("FORCE_HTTPS", False),
        session_cookie_secure=app.config.get("FORCE_HTTPS", False),
        strict_transport_security=True,
        content_security_policy={
            "default-src": "'self'",
            "style-src": "'self' 'unsafe-inline'",
            "img-src": "'self' data:",
        },
    )

    csrf.init_app(app)

    app.extensions["session_factory"] = session_factory or create_session_factory(flask_config.SQLALCHEMY_DATABASE_URI)
    app.extensions["mailer"] = AccountMailer(
        email_adapter=email_adapter or get_email_adapter(flask_config.EMAIL_CFG),
        from_email=flask_config.MAILER_FROM_EMAIL,
        mail_context=FlaskMailContext(app),
    )


def get_locale() -> str:
    """Get the best language match for the visitor."""
    supported_languages = current_app.config.get("LANGUAGES", ["en"])
    if not has_request_context():
        return str(current_app.config.get("BABEL_DEFAULT_LOCALE", supported_languages[0]))

    # a ?lang= parameter switches language for the rest of the session
    requested_language = request.args.get("lang")
    if requested_language and requested_language in supported_languages:
        session["language"] = requested_language
        return requested_language

    if session.get("language") in supported_languages:
        return str(session["language"])

    return request.accept_languages.best_match(supported_languages) or supported_languages[0]


def get_uow() -> AbstractUnitOfWork:
    """A fresh unit of work on the current app's database."""
    return bootstrap.bootstrap(session_factory=current_app.extensions["session_factory"])


def get_mailer() -> AccountMailer:
    mailer = current_app.extensions["mailer"]
    assert isinstance(mailer, AccountMailer)
    return mailer


@login_manager.user_loader
def load_user(user_id: str) -> User | None:
    """Load user from database for Flask-Login."""
    try:
        user_uuid = uuid.UUID(user_id)
    except (ValueError, TypeError):
        return None

    with get_uow() as uow:
        db_user = uow.users.get(user_uuid)
        if db_user:
            return db_user.create_detached_copy()
        return None
