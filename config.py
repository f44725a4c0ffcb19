"""
Configuration for ScholarDocsWeb.

All values can be overridden from the environment or a .env file next
to the application. Size limits for the document tools are the portal's
upload rules and should only change when the portal changes them.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent

KIB = 1024
MIB = 1024 * 1024


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    SESSION_COOKIE_NAME = "scholar_docs_session"
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # ==========================================================================
    # Document tool limits
    # ==========================================================================
    # TOOL_MAX_INPUT_BYTES: total size of all files in one tool job.
    #   Jobs above this are rejected before any processing.
    #
    # TOOL_TARGET_OUTPUT_BYTES: portal ceiling for a single uploaded PDF.
    #   Produced files are never larger than this.
    #
    # MAX_CONTENT_LENGTH leaves headroom for multipart overhead so the
    # producer, not Werkzeug, reports oversized file sets.
    # ==========================================================================
    TOOL_MAX_INPUT_BYTES = int(os.environ.get("TOOL_MAX_INPUT_BYTES", 7 * MIB))
    TOOL_TARGET_OUTPUT_BYTES = int(os.environ.get("TOOL_TARGET_OUTPUT_BYTES", 230 * KIB))
    MAX_CONTENT_LENGTH = TOOL_MAX_INPUT_BYTES + 1 * MIB

    # Seconds a produced PDF stays in memory after it was handed out for download
    RELEASE_GRACE_SECONDS = float(os.environ.get("RELEASE_GRACE_SECONDS", "60"))

    # Finished jobs nobody downloaded or closed are dropped after this
    TOOL_RESULT_MAX_AGE_SECONDS = float(os.environ.get("TOOL_RESULT_MAX_AGE_SECONDS", "900"))

    # Static declaration (affidavit) templates are served from here
    DECLARATION_FORMS_BASE_URL = os.environ.get(
        "DECLARATION_FORMS_BASE_URL", "/static/forms"
    )


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = 3600  # 1 hour


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    SECRET_KEY = "testing-secret-key"
    RELEASE_GRACE_SECONDS = 5.0
