"""
Main routes.

The application is a JSON API; the root only points clients at the wizard.
"""

from flask import Blueprint, redirect, url_for

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    """Redirect root to the wizard state endpoint."""
    return redirect(url_for("wizard.get_wizard"))
