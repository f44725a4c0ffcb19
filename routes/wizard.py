"""
Wizard routes.

Handles:
- GET  /api/wizard          - Current step, answers and applicable options
- POST /api/wizard/<action> - Answer a question or move between steps

The wizard state lives in the session through SessionStateStore. Every
action loads it, applies one pure transition from services.wizard and
saves the new state.
"""

from typing import Any, Callable, Dict

from flask import Blueprint, request

from core.exceptions import InvalidSelectionError
from models.selection import Category, CourseType, Stream
from services import wizard
from services.state_store import SessionStateStore
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

wizard_bp = Blueprint("wizard", __name__)

_store = SessionStateStore()


def _load_state() -> wizard.WizardState:
    return _store.load() or wizard.initial_state()


def _state_response(state: wizard.WizardState) -> Dict[str, Any]:
    data = state.to_dict()
    data["options"] = wizard.step_options(state)
    return data


def _payload() -> Dict[str, Any]:
    return request.get_json(silent=True) or request.form.to_dict()


def _enum_value(enum_cls, payload: Dict[str, Any], field_name: str):
    raw = payload.get("value")
    try:
        return enum_cls(raw)
    except ValueError:
        raise InvalidSelectionError(f"Unknown {field_name}: {raw}", field=field_name)


def _int_value(payload: Dict[str, Any], field_name: str) -> int:
    raw = payload.get("value")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise InvalidSelectionError(f"{field_name} must be a number", field=field_name)


def _bool_value(payload: Dict[str, Any]) -> bool:
    raw = payload.get("value")
    if isinstance(raw, str):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    return bool(raw)


# Each action maps (state, payload) to a new state
_ACTIONS: Dict[str, Callable[[wizard.WizardState, Dict[str, Any]], wizard.WizardState]] = {
    "stream": lambda s, p: wizard.select_stream(s, _enum_value(Stream, p, "stream")),
    "course": lambda s, p: wizard.select_course(s, _enum_value(CourseType, p, "course_type")),
    "category": lambda s, p: wizard.select_category(s, _enum_value(Category, p, "category")),
    "year": lambda s, p: wizard.select_year(s, _int_value(p, "current_year")),
    "gap": lambda s, p: wizard.set_gap(s, _bool_value(p)),
    "hosteller": lambda s, p: wizard.set_hosteller(s, _bool_value(p)),
    "direct-second-year": lambda s, p: wizard.set_direct_second_year(s, _bool_value(p)),
    "login": lambda s, p: wizard.toggle_login(s, str(p.get("value", ""))),
    "next": lambda s, p: wizard.next_step(s),
    "back": lambda s, p: wizard.prev_step(s),
    "restart": lambda s, p: wizard.restart(s),
}


@wizard_bp.route("/api/wizard", methods=["GET"])
def get_wizard():
    """Return the wizard state with the options for the current answers."""
    return _state_response(_load_state())


@wizard_bp.route("/api/wizard/<action>", methods=["POST"])
def wizard_action(action: str):
    """
    Apply one wizard action.

    Body (JSON or form): {"value": ...} for answer actions; navigation
    actions take no body.
    """
    handler = _ACTIONS.get(action)
    if handler is None:
        return {"error": f"Unknown wizard action: {action}"}, 404

    state = _load_state()
    try:
        new_state = handler(state, _payload())
    except InvalidSelectionError as e:
        logger.info(f"Rejected wizard action '{action}': {e.message}")
        return {"error": e.message, "field": e.field}, 400

    _store.save(new_state)
    logger.debug(f"Wizard action '{action}' -> step {new_state.step}")
    return _state_response(new_state)
