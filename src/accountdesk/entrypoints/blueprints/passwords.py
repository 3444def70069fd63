"""ABOUTME: Password reset routes for requesting reset instructions and choosing a new password
ABOUTME: Only confirmed accounts can reset, and signed-in users are sent home"""

from flask import Blueprint, current_app, flash, redirect, render_template, url_for
from flask.typing import ResponseReturnValue
from flask_login import current_user

from accountdesk.entrypoints.extensions import get_mailer, get_uow
from accountdesk.entrypoints.forms import EmailForm, PasswordResetForm, add_validation_errors
from accountdesk.service_layer.exceptions import DeliveryError, EmailNotConfirmed, InvalidResetToken, ValidationError
from accountdesk.service_layer.password_reset_service import (
    get_user_for_reset_token,
    request_password_reset,
    reset_password_with_token,
)
from accountdesk.translations import gettext as _

passwords_bp = Blueprint("passwords", __name__)


@passwords_bp.before_request
def redirect_if_authenticated() -> ResponseReturnValue | None:
    if current_user.is_authenticated:
        flash(_("You are already logged in."), "alert")
        return redirect(url_for("main.index"))
    return None


@passwords_bp.route("/new")
def new() -> ResponseReturnValue:
    """Form to request reset instructions."""
    return render_template("passwords/new.html", form=EmailForm()), 200


@passwords_bp.route("", methods=["POST"])
def create() -> ResponseReturnValue:
    form = EmailForm()
    if not form.validate_on_submit():
        return render_template("passwords/new.html", form=form), 422

    assert form.email.data is not None
    try:
        request_password_reset(get_uow(), get_mailer(), form.email.data)
    except EmailNotConfirmed:
        flash(_("Please confirm your email first."), "alert")
        return redirect(url_for("confirmations.new"))
    except DeliveryError as e:
        current_app.logger.error(f"Could not send password reset email: {e}")
        flash(_("We could not send the reset instructions. Please try again later."), "alert")
        return redirect(url_for("passwords.new"))

    # same answer whether or not the account exists
    flash(_("If that user exists we've sent instructions to their email."), "notice")
    return redirect(url_for("main.index"))


@passwords_bp.route("/<token>/edit")
def edit(token: str) -> ResponseReturnValue:
    """Follow a reset link and show the new password form."""
    try:
        get_user_for_reset_token(get_uow(), token)
    except InvalidResetToken:
        flash(_("Invalid or expired token."), "alert")
        return redirect(url_for("passwords.new"))
    except EmailNotConfirmed:
        flash(_("Please confirm your email first."), "alert")
        return redirect(url_for("confirmations.new"))

    return render_template("passwords/edit.html", form=PasswordResetForm(), token=token), 200


@passwords_bp.route("/<token>", methods=["POST"])
def update(token: str) -> ResponseReturnValue:
    form = PasswordResetForm()
    if not form.validate_on_submit():
        return render_template("passwords/edit.html", form=form, token=token), 422

    try:
        reset_password_with_token(
            get_uow(),
            token,
            form.password.data or "",
            password_confirmation=form.password_confirmation.data or "",
        )
    except InvalidResetToken:
        flash(_("Invalid or expired token."), "alert")
        return redirect(url_for("passwords.new"))
    except EmailNotConfirmed:
        flash(_("Please confirm your email first."), "alert")
        return redirect(url_for("confirmations.new"))
    except ValidationError as e:
        for message in add_validation_errors(form, e):
            flash(message, "alert")
        return render_template("passwords/edit.html", form=form, token=token), 422

    flash(_("Sign in."), "notice")
    return redirect(url_for("auth.login"))
