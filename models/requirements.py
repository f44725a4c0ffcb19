"""
Requirement data models.

Output of the requirement engine: ordered document lists, the optional
"any one of" group and the declaration forms for the student's category.
All models are frozen and use tuples, so a result can be cached and
shared between requests without copying.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, List, Optional, Tuple


class BadgeKind(Enum):
    """How a document has to be prepared before upload."""

    MERGE_REQUIRED = "merge_required"
    """Several papers merged into one PDF."""

    ONE_PDF = "one_pdf"
    """All pages of the document in a single PDF."""

    OPTIONAL = "optional"

    IF_AVAILABLE = "if_available"
    """Upload when the student already holds it."""

    ANY_ONE_REQUIRED = "any_one_required"

    MANDATORY = "mandatory"


BADGE_DISPLAY: Dict[BadgeKind, Dict[str, str]] = {
    BadgeKind.MERGE_REQUIRED: {"label": "Merge required", "tone": "warning"},
    BadgeKind.ONE_PDF: {"label": "Single PDF", "tone": "info"},
    BadgeKind.OPTIONAL: {"label": "Optional", "tone": "muted"},
    BadgeKind.IF_AVAILABLE: {"label": "If available", "tone": "muted"},
    BadgeKind.ANY_ONE_REQUIRED: {"label": "Any one required", "tone": "accent"},
    BadgeKind.MANDATORY: {"label": "Mandatory", "tone": "danger"},
}

_missing_badges = set(BadgeKind) - set(BADGE_DISPLAY)
if _missing_badges:
    raise RuntimeError(f"BADGE_DISPLAY has no entry for: {sorted(b.name for b in _missing_badges)}")


@dataclass(frozen=True)
class DocumentRequirement:
    """A single document the student must (or may) upload."""

    name: str
    badge: Optional[BadgeKind] = None
    file_name: Optional[str] = None
    """Canonical file name hint, e.g. 'Aadhaar_Card.pdf'."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "badge": self.badge.value if self.badge else None,
            "file_name": self.file_name,
        }


@dataclass(frozen=True)
class DeclarationForm:
    """A static affidavit template the student downloads, fills and uploads."""

    title: str
    instruction_text: str
    suggested_file_name: str
    download_url: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "instruction_text": self.instruction_text,
            "suggested_file_name": self.suggested_file_name,
            "download_url": self.download_url,
        }


@dataclass(frozen=True)
class DeclarationSet:
    """
    The declaration entry for a category.

    Open category hostellers get two forms in one set; every other case
    has exactly one.
    """

    key: str
    forms: Tuple[DeclarationForm, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "forms": [f.to_dict() for f in self.forms]}


@dataclass(frozen=True)
class RequirementResult:
    """
    Complete checklist for one selection.

    List order is significant: it is the order colleges expect the
    documents on the portal.
    """

    academic_docs: Tuple[DocumentRequirement, ...]
    government_docs: Tuple[DocumentRequirement, ...]
    hostel_docs: Tuple[DocumentRequirement, ...] = ()
    choice_group: Optional[Tuple[DocumentRequirement, ...]] = None
    declarations: Optional[DeclarationSet] = None

    def all_documents(self) -> List[DocumentRequirement]:
        docs = list(self.academic_docs) + list(self.government_docs) + list(self.hostel_docs)
        if self.choice_group:
            docs.extend(self.choice_group)
        return docs

    def all_file_names(self) -> List[str]:
        """Distinct file name hints in checklist order, declarations last."""
        names: List[str] = []
        for doc in self.all_documents():
            if doc.file_name and doc.file_name not in names:
                names.append(doc.file_name)
        if self.declarations:
            for form in self.declarations.forms:
                if form.suggested_file_name not in names:
                    names.append(form.suggested_file_name)
        return names

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        return {
            "academic_docs": [d.to_dict() for d in self.academic_docs],
            "government_docs": [d.to_dict() for d in self.government_docs],
            "hostel_docs": [d.to_dict() for d in self.hostel_docs],
            "choice_group": (
                [d.to_dict() for d in self.choice_group] if self.choice_group else None
            ),
            "declarations": self.declarations.to_dict() if self.declarations else None,
        }
