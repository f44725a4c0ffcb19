"""
Named rule predicates over SelectionState.

Every branch condition used by the wizard and the requirement engine
lives here, so a rule change is one edit in one place.
"""

from __future__ import annotations

from typing import FrozenSet, Optional, Tuple

from models.selection import (
    Category,
    CourseType,
    SelectionState,
    Stream,
    COURSES_BY_STREAM,
)


MASTER_COURSES: FrozenSet[CourseType] = frozenset({
    CourseType.MPHARM,
    CourseType.MBA,
    CourseType.MCA,
    CourseType.MA,
    CourseType.MSC,
    CourseType.MCOM,
})

TWO_YEAR_COURSES: FrozenSet[CourseType] = MASTER_COURSES | {CourseType.DPHARM}

DEFAULT_YEAR_CAP = 4

# Categories whose first academic document is the bonafide alone
BONAFIDE_ONLY_CATEGORIES: FrozenSet[Category] = frozenset({
    Category.SC, Category.ST, Category.SBC, Category.VJNT,
})

HOSTEL_CATEGORIES: FrozenSet[Category] = frozenset({
    Category.OPEN, Category.SC, Category.ST, Category.SBC, Category.VJNT,
})

INCOME_ALWAYS_CATEGORIES: FrozenSet[Category] = frozenset({
    Category.OPEN, Category.SEBC, Category.MINORITY,
})

NO_CASTE_CATEGORIES: FrozenSet[Category] = frozenset({Category.OPEN, Category.MINORITY})

NON_CREAMY_LAYER_CATEGORIES: FrozenSet[Category] = frozenset({
    Category.OBC, Category.SEBC, Category.SBC, Category.VJNT,
})

CASTE_VALIDITY_MANDATORY_COURSES: FrozenSet[CourseType] = frozenset({
    CourseType.MBA, CourseType.MCA, CourseType.MSC, CourseType.MCOM,
})


# ---------------------------------------------------------------------------
# Course structure
# ---------------------------------------------------------------------------

def requires_course_choice(stream: Optional[Stream]) -> bool:
    """Engineering and Nursing have a single implicit course."""
    return stream in COURSES_BY_STREAM


def course_options(stream: Optional[Stream]) -> Tuple[CourseType, ...]:
    return COURSES_BY_STREAM.get(stream, ())


def year_cap(course_type: Optional[CourseType]) -> int:
    if course_type in TWO_YEAR_COURSES:
        return 2
    return DEFAULT_YEAR_CAP


def year_options(course_type: Optional[CourseType]) -> Tuple[int, ...]:
    return tuple(range(1, year_cap(course_type) + 1))


def is_master_course(state: SelectionState) -> bool:
    # No course (Engineering, Nursing) is never a special course type
    return state.course_type in MASTER_COURSES


def is_dpharm(state: SelectionState) -> bool:
    return state.course_type is CourseType.DPHARM


def is_professional_stream(state: SelectionState) -> bool:
    return state.stream is not None and state.stream is not Stream.ASC


# ---------------------------------------------------------------------------
# Admission type
# ---------------------------------------------------------------------------

def is_fresh_admission(state: SelectionState) -> bool:
    return state.current_year == 1


def is_renewal(state: SelectionState) -> bool:
    return state.current_year is not None and state.current_year > 1


def allows_direct_second_year(state: SelectionState) -> bool:
    """Diploma holders join B-Pharmacy directly in year 2."""
    return state.course_type is CourseType.BPHARM and state.current_year == 2


def is_direct_second_year(state: SelectionState) -> bool:
    return state.is_direct_second_year is True


def needs_login_check(state: SelectionState) -> bool:
    """Renewal students already have a portal account to verify."""
    return is_renewal(state)


# ---------------------------------------------------------------------------
# Category rules
# ---------------------------------------------------------------------------

def uses_bonafide_only(state: SelectionState) -> bool:
    return state.category in BONAFIDE_ONLY_CATEGORIES


def is_hostel_eligible(state: SelectionState) -> bool:
    """Whether the hostel question applies at all."""
    return is_professional_stream(state) and state.category in HOSTEL_CATEGORIES


def has_hostel_documents(state: SelectionState) -> bool:
    return state.is_hosteller and is_hostel_eligible(state)


def has_choice_group(state: SelectionState) -> bool:
    return state.category is Category.OPEN and state.is_hosteller


def needs_income_certificate(state: SelectionState) -> bool:
    return is_fresh_admission(state) or state.category in INCOME_ALWAYS_CATEGORIES


def needs_caste_documents(state: SelectionState) -> bool:
    return state.category is not None and state.category not in NO_CASTE_CATEGORIES


def needs_non_creamy_layer(state: SelectionState) -> bool:
    return is_professional_stream(state) and state.category in NON_CREAMY_LAYER_CATEGORIES


def caste_validity_mandatory(state: SelectionState) -> bool:
    return state.course_type in CASTE_VALIDITY_MANDATORY_COURSES


# ---------------------------------------------------------------------------
# Completeness
# ---------------------------------------------------------------------------

def missing_fields(state: SelectionState) -> list:
    """Fields the engine needs that are still unresolved."""
    missing = []
    if state.stream is None:
        missing.append("stream")
    elif requires_course_choice(state.stream) and state.course_type is None:
        missing.append("course_type")
    if state.category is None:
        missing.append("category")
    if state.current_year is None:
        missing.append("current_year")
    return missing


def invariant_violations(state: SelectionState) -> list:
    """Human-readable reasons a state breaks the selection invariants."""
    problems = []
    if state.course_type is not None and state.course_type not in course_options(state.stream):
        problems.append(f"course {state.course_type.value} is not offered for this stream")
    if state.current_year is not None:
        if not 1 <= state.current_year <= year_cap(state.course_type):
            problems.append(
                f"year {state.current_year} is outside 1..{year_cap(state.course_type)}"
            )
    if state.is_direct_second_year is not None and not allows_direct_second_year(state):
        problems.append("direct second year applies only to B-Pharmacy year 2")
    return problems
