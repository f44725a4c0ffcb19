"""
Wizard state transitions.

The wizard walks the student through six steps:

    1. Stream
    2. Course              (only Pharmacy, Management, ASC)
    3. Category
    4. Year                (+ gap, hostel and direct-second-year questions)
    5. Login readiness     (renewals only)
    6. Document checklist

Every function here is pure: it takes a WizardState and returns a new
one, or raises InvalidSelectionError when the choice is not allowed.
Dependent answers are reset whenever the answer they depend on changes,
so stale answers never reach the requirement engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Any, Optional

from core.exceptions import InvalidSelectionError
from models.selection import (
    Category,
    CourseType,
    LoginReadiness,
    SelectionState,
    Stream,
    LOGIN_FIELDS,
)
from modules import predicates as rules


STEP_STREAM = 1
STEP_COURSE = 2
STEP_CATEGORY = 3
STEP_YEAR = 4
STEP_LOGIN = 5
STEP_DOCUMENTS = 6
FIRST_STEP = STEP_STREAM
LAST_STEP = STEP_DOCUMENTS


@dataclass(frozen=True)
class WizardState:
    """Current step plus the answers given so far."""

    step: int = FIRST_STEP
    selection: SelectionState = field(default_factory=SelectionState)

    def to_dict(self) -> Dict[str, Any]:
        return {"step": self.step, "selection": self.selection.to_dict()}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "WizardState":
        data = data or {}
        step = data.get("step", FIRST_STEP)
        if not isinstance(step, int) or not FIRST_STEP <= step <= LAST_STEP:
            step = FIRST_STEP
        return cls(step=step, selection=SelectionState.from_dict(data.get("selection")))


def _with_selection(state: WizardState, **changes) -> WizardState:
    return replace(state, selection=state.selection.with_changes(**changes))


# ---------------------------------------------------------------------------
# Answers
# ---------------------------------------------------------------------------

def select_stream(state: WizardState, stream: Stream) -> WizardState:
    """Choose a stream; everything chosen after it is cleared."""
    return _with_selection(
        state,
        stream=stream,
        course_type=None,
        category=None,
        current_year=None,
        had_gap=False,
        is_hosteller=False,
        is_direct_second_year=None,
    )


def select_course(state: WizardState, course_type: CourseType) -> WizardState:
    if course_type not in rules.course_options(state.selection.stream):
        raise InvalidSelectionError(
            f"{course_type.label} is not offered for the selected stream", field="course_type"
        )
    return _with_selection(
        state,
        course_type=course_type,
        category=None,
        current_year=None,
        had_gap=False,
        is_hosteller=False,
        is_direct_second_year=None,
    )


def select_category(state: WizardState, category: Category) -> WizardState:
    """Choose a category. The hostel answer never carries over."""
    return _with_selection(state, category=category, is_hosteller=False)


def select_year(state: WizardState, year: int) -> WizardState:
    cap = rules.year_cap(state.selection.course_type)
    if not 1 <= year <= cap:
        raise InvalidSelectionError(f"Year must be between 1 and {cap}", field="current_year")

    selection = state.selection.with_changes(current_year=year)
    return replace(
        state,
        selection=selection.with_changes(
            had_gap=selection.had_gap if year == 1 else False,
            is_direct_second_year=False if rules.allows_direct_second_year(selection) else None,
        ),
    )


def set_gap(state: WizardState, had_gap: bool) -> WizardState:
    if not rules.is_fresh_admission(state.selection):
        raise InvalidSelectionError("Gap year applies to first-year admission only", field="had_gap")
    return _with_selection(state, had_gap=bool(had_gap))


def set_hosteller(state: WizardState, is_hosteller: bool) -> WizardState:
    if not rules.is_hostel_eligible(state.selection):
        raise InvalidSelectionError(
            "Hostel allowance does not apply to this stream and category", field="is_hosteller"
        )
    return _with_selection(state, is_hosteller=bool(is_hosteller))


def set_direct_second_year(state: WizardState, is_direct: bool) -> WizardState:
    if not rules.allows_direct_second_year(state.selection):
        raise InvalidSelectionError(
            "Direct second year applies to B-Pharmacy year 2 only", field="is_direct_second_year"
        )
    return _with_selection(state, is_direct_second_year=bool(is_direct))


def toggle_login(state: WizardState, field_name: str) -> WizardState:
    if field_name not in LOGIN_FIELDS:
        raise InvalidSelectionError(f"Unknown login item: {field_name}", field="login_ready")
    return _with_selection(state, login_ready=state.selection.login_ready.toggled(field_name))


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------

def can_continue(state: WizardState) -> bool:
    """Whether the current step has the answer it needs."""
    selection = state.selection
    if state.step == STEP_STREAM:
        return selection.stream is not None
    if state.step == STEP_COURSE:
        return selection.course_type is not None
    if state.step == STEP_CATEGORY:
        return selection.category is not None
    if state.step == STEP_YEAR:
        return selection.current_year is not None
    if state.step == STEP_LOGIN:
        return selection.login_ready.is_ready
    return False


def next_step(state: WizardState) -> WizardState:
    if state.step == LAST_STEP:
        return state
    if not can_continue(state):
        raise InvalidSelectionError(f"Step {state.step} is not answered yet")

    if state.step == STEP_STREAM:
        if rules.requires_course_choice(state.selection.stream):
            return replace(state, step=STEP_COURSE)
        return replace(
            state,
            step=STEP_CATEGORY,
            selection=state.selection.with_changes(course_type=None),
        )
    if state.step == STEP_YEAR:
        if rules.needs_login_check(state.selection):
            return replace(state, step=STEP_LOGIN)
        return replace(state, step=STEP_DOCUMENTS)
    return replace(state, step=state.step + 1)


def prev_step(state: WizardState) -> WizardState:
    if state.step == STEP_CATEGORY and not rules.requires_course_choice(state.selection.stream):
        return replace(state, step=STEP_STREAM)
    if state.step == STEP_DOCUMENTS and not rules.needs_login_check(state.selection):
        return replace(state, step=STEP_YEAR)
    return replace(state, step=max(FIRST_STEP, state.step - 1))


def restart(state: WizardState) -> WizardState:
    """Back to step 1 with no answers; the login checklist is kept."""
    return WizardState(
        step=FIRST_STEP,
        selection=SelectionState(login_ready=state.selection.login_ready),
    )


def can_evaluate(state: WizardState) -> bool:
    """Whether the requirement engine may be called for this state."""
    return not rules.missing_fields(state.selection)


def step_options(state: WizardState) -> Dict[str, Any]:
    """Choices and follow-up questions relevant to the current answers."""
    selection = state.selection
    return {
        "streams": [{"value": s.value, "label": s.label} for s in Stream],
        "courses": [
            {"value": c.value, "label": c.label}
            for c in rules.course_options(selection.stream)
        ],
        "categories": [c.value for c in Category],
        "years": list(rules.year_options(selection.course_type)),
        "ask_gap": rules.is_fresh_admission(selection),
        "ask_hostel": rules.is_hostel_eligible(selection),
        "ask_direct_second_year": rules.allows_direct_second_year(selection),
        "login_fields": list(LOGIN_FIELDS),
        "can_continue": can_continue(state),
        "can_evaluate": can_evaluate(state),
    }


def initial_state() -> WizardState:
    return WizardState(step=FIRST_STEP, selection=SelectionState(login_ready=LoginReadiness()))
