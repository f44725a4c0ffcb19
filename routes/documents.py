"""
Document checklist route.

Handles:
- GET /api/documents - Checklist for the answers stored in the session

The checklist is only available once the wizard has stream, category,
year and (where the stream offers a choice) course. Until then the
route answers 409 with the missing fields.
"""

from flask import Blueprint, current_app

from core.exceptions import IncompleteSelectionError, InvalidSelectionError
from models.requirements import BADGE_DISPLAY
from modules.requirement_engine import evaluate_requirements
from services.state_store import SessionStateStore
from services.wizard import initial_state
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

documents_bp = Blueprint("documents", __name__)

_store = SessionStateStore()


@documents_bp.route("/api/documents", methods=["GET"])
def documents():
    state = _store.load() or initial_state()

    try:
        result = evaluate_requirements(
            state.selection,
            forms_base_url=current_app.config.get("DECLARATION_FORMS_BASE_URL"),
        )
    except IncompleteSelectionError as e:
        return {"error": e.message, "missing": e.missing}, 409
    except InvalidSelectionError as e:
        # Session holds a state the wizard would never produce
        logger.warning(f"Stored selection is invalid: {e.message}")
        return {"error": e.message}, 400

    data = result.to_dict()
    data["badges"] = {kind.value: display for kind, display in BADGE_DISPLAY.items()}
    data["file_names"] = result.all_file_names()
    data["selection"] = state.selection.to_dict()
    return data
