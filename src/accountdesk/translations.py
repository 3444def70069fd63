"""ABOUTME: gettext helpers for user-facing text
ABOUTME: Translates through Flask-Babel inside an app that has it, and interpolates the English text anywhere else"""

from typing import Any

from flask import current_app, has_app_context
from flask_babel import LazyString
from flask_babel import gettext as flask_gettext


def _interpolate(message: str, **kwargs: Any) -> str:
    return message % kwargs if kwargs else message


def gettext(message: str, **kwargs: Any) -> str:
    """
    Translate `message` for the current locale.

    The CLI and the service layer run without Flask-Babel, where the message
    comes back untranslated with any %(name)s placeholders filled in.
    """
    if has_app_context() and "babel" in current_app.extensions:
        return str(flask_gettext(message, **kwargs))
    return _interpolate(message, **kwargs)


def lazy_gettext(message: str, **kwargs: Any) -> LazyString:  # type: ignore[no-any-unimported]
    """Translate when the string is rendered. For text defined at import time, such as form labels."""
    return LazyString(gettext, message, **kwargs)


_ = gettext
_l = lazy_gettext
