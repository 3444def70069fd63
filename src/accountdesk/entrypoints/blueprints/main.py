"""ABOUTME: Main application routes
ABOUTME: Serves the home page for signed-in and anonymous visitors"""

from flask import Blueprint, render_template
from flask.typing import ResponseReturnValue

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index() -> ResponseReturnValue:
    """Home page."""
    return render_template("main/index.html"), 200
