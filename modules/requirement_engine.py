"""
Document requirement engine.

Maps a complete SelectionState to the ordered checklist the student
uploads on the scholarship portal. The function is pure: same state in,
same (frozen) result out. Results are cached, so repeated renders of the
checklist cost nothing.

Usage:
    from modules.requirement_engine import evaluate_requirements

    result = evaluate_requirements(state)
    for doc in result.academic_docs:
        print(doc.name, doc.badge)
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import List, Optional

from core.exceptions import IncompleteSelectionError, InvalidSelectionError
from models.requirements import (
    BadgeKind,
    DocumentRequirement,
    RequirementResult,
)
from models.selection import SelectionState, Stream
from modules import predicates as rules
from modules.declarations import declaration_set


class MarksheetPolicy(Enum):
    """
    Which semester marksheets a renewal student uploads.

    PRECEDING_YEAR is the current portal rule. ALL_PRIOR_YEARS is the
    older cumulative rule, kept so a switch back is a one-line change.
    """

    PRECEDING_YEAR = "preceding_year"
    ALL_PRIOR_YEARS = "all_prior_years"


# ---------------------------------------------------------------------------
# Document vocabulary
# ---------------------------------------------------------------------------

BONAFIDE = DocumentRequirement(
    "Current Admission Bonafide Certificate", file_name="Bonafide_Certificate.pdf"
)
BONAFIDE_WITH_RECEIPT = DocumentRequirement(
    "Admission Bonafide + Fees Paid Receipt", BadgeKind.MERGE_REQUIRED, "Admission_Receipt.pdf"
)
MARKSHEET_10TH = DocumentRequirement("10th Marksheet", file_name="10th_Marksheet.pdf")
MARKSHEET_12TH = DocumentRequirement("12th Marksheet", file_name="12th_Marksheet.pdf")
DIPLOMA_MARKSHEET = DocumentRequirement(
    "Diploma Marksheets (All Years)", BadgeKind.ONE_PDF, "Diploma_Marksheet.pdf"
)
GRADUATION_MARKSHEET = DocumentRequirement(
    "Graduation Final Marksheet", file_name="Graduation_Final_Marksheet.pdf"
)
GRADUATION_TC = DocumentRequirement("Graduation TC", file_name="Graduation_TC.pdf")
PREVIOUS_TC_FRESH = DocumentRequirement(
    "Previous College TC / Leaving Certificate", file_name="12th_TC.pdf"
)
PREVIOUS_TC_RENEWAL = DocumentRequirement(
    "Previous College TC / Leaving Certificate", file_name="TC.pdf"
)
GAP_CERTIFICATE = DocumentRequirement("Gap Certificate", BadgeKind.ONE_PDF, "Gap_Certificate.pdf")
FIRST_YEAR_MARKSHEET = DocumentRequirement(
    "1st Year Marksheet", BadgeKind.ONE_PDF, "1stYear_Marksheet.pdf"
)

AADHAAR = DocumentRequirement("Aadhaar Card", file_name="Aadhaar_Card.pdf")
INCOME_CERTIFICATE = DocumentRequirement("Income Certificate", file_name="Income_Certificate.pdf")
CASTE_CERTIFICATE = DocumentRequirement("Caste Certificate", file_name="Caste_Certificate.pdf")
NON_CREAMY_LAYER = DocumentRequirement(
    "Non-Creamy Layer Certificate", BadgeKind.IF_AVAILABLE, "NCL_Certificate.pdf"
)
DOMICILE = DocumentRequirement("Domicile Certificate", file_name="Domicile_Certificate.pdf")

HOSTEL_BOND = DocumentRequirement(
    "Hostel Bond + Hostel Fees Receipt", BadgeKind.MERGE_REQUIRED, "Hostel_Bond.pdf"
)
HOSTEL_CHOICES = (
    DocumentRequirement(
        "Registered Labour Certificate", BadgeKind.ANY_ONE_REQUIRED, "Labour_Certificate.pdf"
    ),
    DocumentRequirement(
        "Marginal Land Holder Certificate (7/12 Extract)",
        BadgeKind.ANY_ONE_REQUIRED,
        "Land_Holder_Certificate.pdf",
    ),
)

_ALLOTMENT_LABELS = {
    Stream.ENGINEERING: "Engineering CAP",
    Stream.PHARMACY: "Pharmacy CAP",
    Stream.NURSING: "Nursing CAP",
    Stream.MANAGEMENT: "Management CAP",
}


def allotment_letter(stream: Stream) -> DocumentRequirement:
    return DocumentRequirement(
        f"College Allotment Letter ({_ALLOTMENT_LABELS[stream]})",
        file_name="College_Allotment_Letter.pdf",
    )


def semester_marksheet(completed_year: int) -> DocumentRequirement:
    """Two-semester marksheet for a completed year (year 1 -> Sem 1 + Sem 2)."""
    first = completed_year * 2 - 1
    second = completed_year * 2
    return DocumentRequirement(
        f"Sem {first} + Sem {second} Marksheet",
        BadgeKind.MERGE_REQUIRED,
        f"Sem{first}_Sem{second}_Marksheet.pdf",
    )


def caste_validity(state: SelectionState) -> DocumentRequirement:
    if rules.caste_validity_mandatory(state):
        badge = BadgeKind.MANDATORY
    elif rules.is_professional_stream(state):
        badge = BadgeKind.IF_AVAILABLE
    else:
        badge = BadgeKind.OPTIONAL
    return DocumentRequirement("Caste Validity Certificate", badge, "Caste_Validity.pdf")


# ---------------------------------------------------------------------------
# Rule evaluation
# ---------------------------------------------------------------------------

def completed_years(current_year: int, policy: MarksheetPolicy) -> List[int]:
    """Completed years whose semester marksheets a renewal student uploads."""
    if current_year <= 1:
        return []
    if policy is MarksheetPolicy.ALL_PRIOR_YEARS:
        return list(range(1, current_year))
    return [current_year - 1]


def academic_documents(
    state: SelectionState,
    policy: MarksheetPolicy = MarksheetPolicy.PRECEDING_YEAR,
) -> List[DocumentRequirement]:
    docs: List[DocumentRequirement] = []

    docs.append(BONAFIDE if rules.uses_bonafide_only(state) else BONAFIDE_WITH_RECEIPT)
    docs.append(MARKSHEET_10TH)
    docs.append(MARKSHEET_12TH)

    if rules.is_professional_stream(state):
        docs.append(allotment_letter(state.stream))

    if rules.is_direct_second_year(state):
        docs.append(DIPLOMA_MARKSHEET)

    master = rules.is_master_course(state)

    if rules.is_fresh_admission(state):
        if master:
            docs.append(GRADUATION_MARKSHEET)
            docs.append(GRADUATION_TC)
        else:
            docs.append(PREVIOUS_TC_FRESH)
        if state.had_gap:
            docs.append(GAP_CERTIFICATE)
        return docs

    if rules.is_dpharm(state):
        docs.append(FIRST_YEAR_MARKSHEET)
    elif not rules.is_direct_second_year(state):
        for year in completed_years(state.current_year, policy):
            docs.append(semester_marksheet(year))

    docs.append(GRADUATION_TC if master else PREVIOUS_TC_RENEWAL)
    return docs


def government_documents(state: SelectionState) -> List[DocumentRequirement]:
    docs: List[DocumentRequirement] = [AADHAAR]

    if rules.needs_income_certificate(state):
        docs.append(INCOME_CERTIFICATE)

    if rules.needs_caste_documents(state):
        docs.append(CASTE_CERTIFICATE)
        if rules.needs_non_creamy_layer(state):
            docs.append(NON_CREAMY_LAYER)
        docs.append(caste_validity(state))

    docs.append(DOMICILE)
    return docs


def hostel_documents(state: SelectionState) -> List[DocumentRequirement]:
    return [HOSTEL_BOND] if rules.has_hostel_documents(state) else []


def choice_group(state: SelectionState) -> Optional[tuple]:
    return HOSTEL_CHOICES if rules.has_choice_group(state) else None


def check_selection(state: SelectionState) -> None:
    """Raise if the engine must not be called with this state."""
    missing = rules.missing_fields(state)
    if missing:
        raise IncompleteSelectionError(missing)
    problems = rules.invariant_violations(state)
    if problems:
        raise InvalidSelectionError("; ".join(problems))


@lru_cache(maxsize=512)
def _evaluate(
    state: SelectionState,
    policy: MarksheetPolicy,
    forms_base_url: Optional[str],
) -> RequirementResult:
    return RequirementResult(
        academic_docs=tuple(academic_documents(state, policy)),
        government_docs=tuple(government_documents(state)),
        hostel_docs=tuple(hostel_documents(state)),
        choice_group=choice_group(state),
        declarations=declaration_set(state, forms_base_url),
    )


def evaluate_requirements(
    state: SelectionState,
    marksheet_policy: MarksheetPolicy = MarksheetPolicy.PRECEDING_YEAR,
    forms_base_url: Optional[str] = None,
) -> RequirementResult:
    """
    Compute the document checklist for a complete selection.

    Args:
        state: Snapshot with stream, category, year (and course where the
            stream offers a choice) resolved
        marksheet_policy: Semester marksheet rule for renewals
        forms_base_url: Where declaration templates are hosted
            (defaults to Config.DECLARATION_FORMS_BASE_URL)

    Returns:
        RequirementResult with ordered, frozen document lists

    Raises:
        IncompleteSelectionError: A required field is unresolved
        InvalidSelectionError: The state breaks a selection invariant
    """
    check_selection(state)
    return _evaluate(state, marksheet_policy, forms_base_url)
