"""ABOUTME: Email confirmation routes for resending instructions and following confirmation links
ABOUTME: A followed link confirms the pending address and signs the user in"""

from flask import Blueprint, current_app, flash, redirect, render_template, url_for
from flask.typing import ResponseReturnValue
from flask_login import login_user

from accountdesk.entrypoints.extensions import get_mailer, get_uow
from accountdesk.entrypoints.forms import EmailForm
from accountdesk.service_layer.email_confirmation_service import confirm_user_with_token, request_confirmation_email
from accountdesk.service_layer.exceptions import DeliveryError, InvalidConfirmationToken, ValidationError
from accountdesk.translations import gettext as _

confirmations_bp = Blueprint("confirmations", __name__)


@confirmations_bp.route("/new")
def new() -> ResponseReturnValue:
    """Form to resend confirmation instructions."""
    return render_template("confirmations/new.html", form=EmailForm()), 200


@confirmations_bp.route("", methods=["POST"])
def create() -> ResponseReturnValue:
    form = EmailForm()
    if not form.validate_on_submit():
        return render_template("confirmations/new.html", form=form), 422

    assert form.email.data is not None
    try:
        sent = request_confirmation_email(get_uow(), get_mailer(), form.email.data)
    except DeliveryError as e:
        current_app.logger.error(f"Could not resend confirmation email: {e}")
        flash(_("We could not send your confirmation email. Please try again later."), "alert")
        return redirect(url_for("confirmations.new"))

    if not sent:
        flash(_("We could not find a user with that email or that email has already been confirmed."), "alert")
        return redirect(url_for("confirmations.new"))

    flash(_("Check your email for confirmation instructions."), "notice")
    return redirect(url_for("main.index"))


@confirmations_bp.route("/<token>/edit")
def edit(token: str) -> ResponseReturnValue:
    """Follow a confirmation link."""
    try:
        user = confirm_user_with_token(get_uow(), token)
    except InvalidConfirmationToken as e:
        current_app.logger.info(f"Rejected confirmation link: {e.reason}")
        flash(_("Invalid token."), "alert")
        return redirect(url_for("confirmations.new"))
    except ValidationError as e:
        flash("; ".join(e.full_messages()), "alert")
        return redirect(url_for("confirmations.new"))

    login_user(user)
    flash(_("Your account has been confirmed."), "notice")
    return redirect(url_for("main.index"))
