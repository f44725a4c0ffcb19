"""
Flask route blueprints for ScholarDocsWeb.

This module contains all route handlers organized by functionality:
- main: Root redirect
- wizard: Wizard state and answers
- documents: Document checklist
- tools: Merge / compress / images-to-PDF jobs
- api: Health check

Each blueprint is registered with the Flask app in create_app().
"""

from .main import main_bp
from .wizard import wizard_bp
from .documents import documents_bp
from .tools import tools_bp
from .api import api_bp

__all__ = [
    "main_bp",
    "wizard_bp",
    "documents_bp",
    "tools_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(main_bp)
    app.register_blueprint(wizard_bp)
    app.register_blueprint(documents_bp)
    app.register_blueprint(tools_bp)
    app.register_blueprint(api_bp)
