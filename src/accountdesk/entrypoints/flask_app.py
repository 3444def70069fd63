"""ABOUTME: Flask application factory with configuration, blueprints, and error handling
ABOUTME: Creates and configures Flask app instance with all necessary extensions and routes"""

from flask import Flask, Response, render_template
from flask_login import current_user
from sqlalchemy.orm import sessionmaker
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

import accountdesk.logging
from accountdesk import config
from accountdesk.adapters.database import start_mappers
from accountdesk.adapters.email import EmailAdapter
from accountdesk.entrypoints.extensions import init_extensions


def create_app(
    config_name: str = "",
    session_factory: sessionmaker | None = None,
    email_adapter: EmailAdapter | None = None,
) -> Flask:
    """
    Flask application factory.

    Args:
        config_name: Configuration name (development, testing, production)
        session_factory: Database sessions to use instead of the configured database
        email_adapter: Mail backend to use instead of the configured one

    Returns:
        Configured Flask application instance
    """
    accountdesk.logging.logging_setup(config.get_log_level())
    start_mappers()

    app = Flask(__name__, template_folder=str(config.get_templates_path()))

    flask_config = config.get_config(config_name)
    app.config.from_object(flask_config)

    # trust one layer of reverse proxy for X-Forwarded-* headers
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore[method-assign]

    init_extensions(app, flask_config, session_factory=session_factory, email_adapter=email_adapter)

    register_blueprints(app)
    register_error_handlers(app)
    register_after_request_handlers(app)

    app.logger.info("accountdesk application startup")

    return app


def register_blueprints(app: Flask) -> None:
    """Register application blueprints."""
    from .blueprints.auth import auth_bp
    from .blueprints.confirmations import confirmations_bp
    from .blueprints.main import main_bp
    from .blueprints.passwords import passwords_bp
    from .blueprints.users import users_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(confirmations_bp, url_prefix="/confirmations")
    app.register_blueprint(passwords_bp, url_prefix="/passwords")


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for common HTTP errors."""

    @app.errorhandler(404)
    def not_found(error: HTTPException) -> tuple[str, int]:
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def internal_error(error: HTTPException) -> tuple[str, int]:
        app.logger.error(f"Server Error: {error}")
        return render_template("errors/500.html"), 500


def register_after_request_handlers(app: Flask) -> None:
    """Register after request handlers."""

    @app.after_request
    def add_cache_headers_for_authenticated_users(response: Response) -> Response:
        """Stop browsers caching pages rendered for a signed-in user."""
        if current_user.is_authenticated:
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"

        return response
