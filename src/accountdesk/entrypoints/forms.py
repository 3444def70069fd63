"""ABOUTME: Form definitions using Flask-WTF with CSRF protection
ABOUTME: Field-level account rules are left to the service layer so every error is reported together"""

from typing import Any

from flask_wtf import FlaskForm
from wtforms import BooleanField, EmailField, PasswordField
from wtforms.validators import InputRequired, Length, Optional, ValidationError

from accountdesk.domain.value_objects import humanize_field
from accountdesk.domain.value_objects import validate_email as domain_validate_email
from accountdesk.service_layer.exceptions import ValidationError as AccountValidationError
from accountdesk.translations import gettext as _
from accountdesk.translations import lazy_gettext as _l


class DomainEmailValidator:
    """WTForms validator that uses our domain email validation."""

    def __init__(self, message: str | None = None) -> None:
        self.message = message

    def __call__(self, form: Any, field: Any) -> None:
        if not field.data:
            raise ValidationError(_("Empty email address"))
        try:
            domain_validate_email(field.data.strip().lower())
        except ValueError as error:
            raise ValidationError(self.message or _("Invalid email address")) from error


class LoginForm(FlaskForm):  # type: ignore[no-any-unimported]
    """Login form with email and password."""

    email = EmailField(_l("Email address"), validators=[InputRequired()], render_kw={"autocomplete": "email"})
    password = PasswordField(
        _l("Password"), validators=[InputRequired()], render_kw={"autocomplete": "current-password"}
    )
    remember_me = BooleanField(_l("Remember me"))


class SignUpForm(FlaskForm):  # type: ignore[no-any-unimported]
    email = EmailField(_l("Email address"), validators=[Length(max=255)], render_kw={"autocomplete": "email"})
    password = PasswordField(_l("Password"), render_kw={"autocomplete": "new-password"})
    password_confirmation = PasswordField(_l("Password confirmation"), render_kw={"autocomplete": "new-password"})


class AccountForm(FlaskForm):  # type: ignore[no-any-unimported]
    """Change the password or ask for a new email address. Both need the current password."""

    current_password = PasswordField(
        _l("Current password"), validators=[InputRequired()], render_kw={"autocomplete": "current-password"}
    )
    unconfirmed_email = EmailField(
        _l("New email address"),
        validators=[Optional(), Length(max=255)],
        description=_l("Leave blank to keep your current email address"),
    )
    password = PasswordField(
        _l("New password"),
        description=_l("Leave blank to keep your current password"),
        render_kw={"autocomplete": "new-password"},
    )
    password_confirmation = PasswordField(_l("New password confirmation"), render_kw={"autocomplete": "new-password"})


class EmailForm(FlaskForm):  # type: ignore[no-any-unimported]
    """Ask for an email address, to resend confirmation or reset instructions."""

    email = EmailField(
        _l("Email address"), validators=[InputRequired(), DomainEmailValidator()], render_kw={"autocomplete": "email"}
    )


class PasswordResetForm(FlaskForm):  # type: ignore[no-any-unimported]
    password = PasswordField(_l("New password"), render_kw={"autocomplete": "new-password"})
    password_confirmation = PasswordField(_l("New password confirmation"), render_kw={"autocomplete": "new-password"})


def add_validation_errors(form: FlaskForm, error: AccountValidationError) -> list[str]:  # type: ignore[no-any-unimported]
    """
    Attach service-layer field errors, as full messages, to the matching form fields.

    Returns the full messages for fields the form does not have, so the caller
    can show them some other way.
    """
    unmatched: list[str] = []
    for field_name, messages in error.errors.items():
        full_messages = [f"{humanize_field(field_name)} {message}" for message in messages]
        field = getattr(form, field_name, None)
        if field is None:
            unmatched += full_messages
            continue
        field.errors = [*field.errors, *full_messages]
    return unmatched
