"""ABOUTME: Account routes for signing up, editing and deleting your own account
ABOUTME: New and changed email addresses are confirmed by email before they take effect"""

from flask import Blueprint, current_app, flash, redirect, render_template, url_for
from flask.typing import ResponseReturnValue
from flask_login import current_user, login_required, logout_user

from accountdesk.entrypoints.extensions import get_mailer, get_uow
from accountdesk.entrypoints.forms import AccountForm, SignUpForm, add_validation_errors
from accountdesk.service_layer.email_confirmation_service import send_confirmation_email
from accountdesk.service_layer.exceptions import DeliveryError, InvalidCredentials, ValidationError
from accountdesk.service_layer.user_service import create_user, delete_user, update_account
from accountdesk.translations import gettext as _

users_bp = Blueprint("users", __name__)


@users_bp.route("/sign_up", methods=["GET", "POST"])
def new() -> ResponseReturnValue:
    """Sign up, then send the confirmation email."""
    if current_user.is_authenticated:
        return redirect(url_for("main.index"))

    form = SignUpForm()

    if form.validate_on_submit():
        try:
            user = create_user(
                get_uow(),
                email=form.email.data or "",
                password=form.password.data or "",
                password_confirmation=form.password_confirmation.data or "",
            )
        except ValidationError as e:
            for message in add_validation_errors(form, e):
                flash(message, "alert")
            return render_template("users/new.html", form=form), 422

        try:
            send_confirmation_email(get_uow(), get_mailer(), user.id)
        except DeliveryError as e:
            current_app.logger.error(f"Could not send confirmation email to new user {user.id}: {e}")
            flash(_("We could not send your confirmation email. Please request a new one."), "alert")
            return redirect(url_for("confirmations.new"))

        flash(_("Please check your email for confirmation instructions."), "notice")
        return redirect(url_for("main.index"))

    return render_template("users/new.html", form=form), 200


@users_bp.route("/account", methods=["GET", "POST"])
@login_required
def edit() -> ResponseReturnValue:
    """Change the password or the email address of the signed-in user."""
    form = AccountForm()

    if form.validate_on_submit():
        assert form.current_password.data is not None
        try:
            user, reconfirming = update_account(
                get_uow(),
                user_id=current_user.id,
                current_password=form.current_password.data,
                unconfirmed_email=form.unconfirmed_email.data,
                password=form.password.data,
                password_confirmation=form.password_confirmation.data or "",
            )
        except InvalidCredentials as e:
            flash(str(e), "alert")
            return render_template("users/edit.html", form=form), 422
        except ValidationError as e:
            for message in add_validation_errors(form, e):
                flash(message, "alert")
            return render_template("users/edit.html", form=form), 422

        if not reconfirming:
            flash(_("Account updated."), "notice")
            return redirect(url_for("main.index"))

        try:
            send_confirmation_email(get_uow(), get_mailer(), user.id)
        except DeliveryError as e:
            current_app.logger.error(f"Could not send reconfirmation email to user {user.id}: {e}")
            flash(_("We could not send your confirmation email. Please try again later."), "alert")
            return redirect(url_for("users.edit"))

        flash(_("Check your email for confirmation instructions."), "notice")
        return redirect(url_for("main.index"))

    status = 422 if form.is_submitted() else 200
    return render_template("users/edit.html", form=form), status


@users_bp.route("/account/delete", methods=["POST"])
@login_required
def delete() -> ResponseReturnValue:
    user_id = current_user.id
    delete_user(get_uow(), user_id)
    logout_user()
    flash(_("Your account has been deleted."), "notice")
    return redirect(url_for("main.index"))
