"""ABOUTME: Rendering context for outbound mail, keeps the service layer free of Flask
ABOUTME: Renders email templates and builds absolute links back into the web app"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flask import Flask


class MailContext(ABC):
    """What a mailer needs from the web layer: templates and links."""

    @abstractmethod
    def render(self, template_name: str, **context: Any) -> str:
        """Render a template (e.g. "emails/confirmation.txt") with the given variables."""
        pass

    @abstractmethod
    def external_url(self, endpoint: str, **values: Any) -> str:
        """Build an absolute URL for an endpoint such as "confirmations.edit"."""
        pass


class FlaskMailContext(MailContext):
    """MailContext backed by a Flask application's Jinja environment and URL map."""

    def __init__(self, app: "Flask"):
        self.app = app

    def render(self, template_name: str, **context: Any) -> str:
        # Import at runtime to avoid Flask dependency at module level
        from flask import render_template

        with self.app.app_context():
            return render_template(template_name, **context)

    def external_url(self, endpoint: str, **values: Any) -> str:
        # outside a request Flask needs SERVER_NAME to build external URLs
        return self.app.url_for(endpoint, _external=True, **values)
