"""
API routes.

Handles:
- /health - Health check endpoint
"""

from flask import Blueprint, current_app

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {},
    }

    tool_service = current_app.config.get("TOOL_SERVICE")
    health_status["checks"]["tool_service"] = "running" if tool_service else "unavailable"
    if not tool_service:
        health_status["status"] = "degraded"

    health_status["limits"] = {
        "max_input_bytes": current_app.config.get("TOOL_MAX_INPUT_BYTES"),
        "target_output_bytes": current_app.config.get("TOOL_TARGET_OUTPUT_BYTES"),
    }

    return health_status
