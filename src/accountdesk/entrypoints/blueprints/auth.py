"""ABOUTME: Session routes for logging in and out
ABOUTME: Only users who have confirmed their email address get a session"""

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from flask.typing import ResponseReturnValue
from flask_login import current_user, login_user, logout_user

from accountdesk.entrypoints.extensions import get_uow
from accountdesk.entrypoints.forms import LoginForm
from accountdesk.service_layer.exceptions import InvalidCredentials
from accountdesk.service_layer.user_service import authenticate_user
from accountdesk.translations import gettext as _

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/login", methods=["GET", "POST"])
def login() -> ResponseReturnValue:
    """User login page."""
    if current_user.is_authenticated:
        return redirect(url_for("main.index"))

    form = LoginForm()

    if form.validate_on_submit():
        # After form validation, these fields are guaranteed to be non-None
        assert form.email.data is not None
        assert form.password.data is not None
        try:
            user = authenticate_user(get_uow(), form.email.data, form.password.data)
        except InvalidCredentials as e:
            flash(str(e), "alert")
            return render_template("auth/login.html", form=form), 422

        if user.is_unconfirmed():
            current_app.logger.info(f"Refused login for unconfirmed user {user.id}")
            flash(_("Incorrect email or password."), "alert")
            return redirect(url_for("confirmations.new"))

        login_user(user, remember=form.remember_me.data)
        current_app.logger.info(f"User {user.id} logged in")

        next_page = request.args.get("next")
        if next_page and next_page.startswith("/") and not next_page.startswith("//"):
            return redirect(next_page)
        return redirect(url_for("main.index"))

    if request.method == "POST":
        return render_template("auth/login.html", form=form), 422
    return render_template("auth/login.html", form=form), 200


@auth_bp.route("/logout", methods=["POST", "DELETE"])
def logout() -> ResponseReturnValue:
    """End the session. Anonymous visitors are just sent home."""
    if current_user.is_authenticated:
        logout_user()
        flash(_("Signed out."), "notice")
    return redirect(url_for("main.index"))
