"""
ScholarDocsWeb - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration (.env, Config classes)
2. Configures logging with thread context
3. Creates the tool service (thread-per-job)
4. Registers route blueprints
5. Sets up JSON error handlers

ARCHITECTURE:
    Main Thread
    ├── Flask request handling (wizard, checklist, tool endpoints)
    └── Cleanup on shutdown (joins tool threads)

    Tool Threads (one per tool job)
    └── Run one at a time behind the service run lock
"""

from __future__ import annotations

import atexit
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from modules.document_producer import ProducerLimits
from modules.pdf_analyzer import PDFAnalyzer
from services.tool_service import ToolService
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


ENV_FILE = Path(__file__).parent / ".env"


def create_app(config_object: str = "config.Config") -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path of the config class to load

    Returns:
        Configured Flask application
    """
    # .env next to app.py takes precedence over the shell environment
    load_dotenv(ENV_FILE if ENV_FILE.exists() else None, override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        app_name="scholar_docs",
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting ScholarDocsWeb in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    limits = ProducerLimits(
        max_input_bytes=app.config["TOOL_MAX_INPUT_BYTES"],
        target_output_bytes=app.config["TOOL_TARGET_OUTPUT_BYTES"],
    )
    tool_service = ToolService(
        limits=limits,
        release_grace_seconds=app.config["RELEASE_GRACE_SECONDS"],
        result_max_age_seconds=app.config["TOOL_RESULT_MAX_AGE_SECONDS"],
    )
    app.config["TOOL_SERVICE"] = tool_service
    logger.info(
        f"Tool service initialized (input limit {limits.max_input_bytes // (1024 * 1024)} MB, "
        f"output ceiling {limits.target_output_bytes // 1024} KB)"
    )

    app.config["PDF_ANALYZER"] = PDFAnalyzer(size_limit_bytes=limits.target_output_bytes)

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")
        tool_service.shutdown()
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(e):
        max_mb = app.config["TOOL_MAX_INPUT_BYTES"] / (1024 * 1024)
        return {
            "error": "input_too_large",
            "message": f"Files too large. Maximum total upload size is {max_mb:.0f} MB.",
        }, 413

    @app.errorhandler(404)
    def handle_not_found(e):
        return {"error": "not_found", "message": "Resource not found."}, 404

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return {
            "error": "server_error",
            "message": "An unexpected error occurred. Please try again.",
        }, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
