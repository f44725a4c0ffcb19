"""
Selection data models.

These models describe what the student told the wizard: stream, course,
reservation category, current year and the follow-up questions
(gap year, hostel, direct second year, login readiness).

SelectionState is frozen. Every wizard step produces a new snapshot and
the requirement engine always evaluates a complete snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Dict, Any, Optional, Tuple


class Stream(Enum):
    """Top-level academic track."""

    ENGINEERING = "Engineering"
    PHARMACY = "Pharmacy"
    NURSING = "Nursing"
    MANAGEMENT = "Management"
    ASC = "ASC"
    """Arts, Science and Commerce."""

    @property
    def label(self) -> str:
        return STREAM_LABELS[self]


class CourseType(Enum):
    """Course variants offered for streams with more than one course."""

    BPHARM = "BPharm"
    DPHARM = "DPharm"
    MPHARM = "MPharm"
    BBA = "BBA"
    BCA = "BCA"
    MBA = "MBA"
    MCA = "MCA"
    BA = "BA"
    BSC = "BSc"
    BCOM = "BCom"
    MA = "MA"
    MSC = "MSc"
    MCOM = "MCom"

    @property
    def label(self) -> str:
        return COURSE_LABELS[self]


class Category(Enum):
    """Government reservation category (mutually exclusive)."""

    OPEN = "Open"
    OBC = "OBC"
    SC = "SC"
    ST = "ST"
    SBC = "SBC"
    VJNT = "VJNT"
    SEBC = "SEBC"
    MINORITY = "Minority"


STREAM_LABELS = {
    Stream.ENGINEERING: "Engineering",
    Stream.PHARMACY: "Pharmacy",
    Stream.NURSING: "Nursing",
    Stream.MANAGEMENT: "Management",
    Stream.ASC: "Arts / Science / Commerce",
}

COURSE_LABELS = {
    CourseType.BPHARM: "B-Pharmacy (Degree)",
    CourseType.DPHARM: "D-Pharmacy (Diploma)",
    CourseType.MPHARM: "M-Pharmacy (Post-Grad)",
    CourseType.BBA: "BBA (Management)",
    CourseType.BCA: "BCA (Computer Apps)",
    CourseType.MBA: "MBA (Management)",
    CourseType.MCA: "MCA (Computer Apps)",
    CourseType.BA: "Bachelor of Arts (BA)",
    CourseType.BSC: "Bachelor of Science (BSc)",
    CourseType.BCOM: "Bachelor of Commerce (BCom)",
    CourseType.MA: "Master of Arts (MA)",
    CourseType.MSC: "Master of Science (MSc)",
    CourseType.MCOM: "Master of Commerce (MCom)",
}

# Courses offered per stream, in the order the wizard lists them.
# Streams missing here have a single implicit course.
COURSES_BY_STREAM: Dict[Stream, Tuple[CourseType, ...]] = {
    Stream.PHARMACY: (CourseType.BPHARM, CourseType.DPHARM, CourseType.MPHARM),
    Stream.MANAGEMENT: (CourseType.BBA, CourseType.BCA, CourseType.MBA, CourseType.MCA),
    Stream.ASC: (
        CourseType.BA, CourseType.BSC, CourseType.BCOM,
        CourseType.MA, CourseType.MSC, CourseType.MCOM,
    ),
}

LOGIN_FIELDS = ("username", "password", "mobile")


def _parse_enum(enum_cls, value):
    """Map a stored value back to an enum member, None if unknown."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class LoginReadiness:
    """
    Portal login checklist shown before renewal documents.

    Not used by the requirement engine; it only gates the wizard.
    """

    username: bool = False
    password: bool = False
    mobile: bool = False

    @property
    def is_ready(self) -> bool:
        return self.username and self.password and self.mobile

    def toggled(self, field_name: str) -> "LoginReadiness":
        return replace(self, **{field_name: not getattr(self, field_name)})

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "LoginReadiness":
        data = data or {}
        return cls(**{name: bool(data.get(name, False)) for name in LOGIN_FIELDS})


@dataclass(frozen=True)
class SelectionState:
    """
    Immutable snapshot of the student's wizard answers.

    Invariants (enforced by services.wizard, checked by the engine):
        - course_type belongs to stream, or is None for Engineering/Nursing
        - current_year never exceeds the course's year cap
        - is_direct_second_year is non-null only for BPharm in year 2
        - choosing a category resets is_hosteller to False
    """

    stream: Optional[Stream] = None
    course_type: Optional[CourseType] = None
    category: Optional[Category] = None
    current_year: Optional[int] = None
    had_gap: bool = False
    is_hosteller: bool = False
    is_direct_second_year: Optional[bool] = None
    login_ready: LoginReadiness = field(default_factory=LoginReadiness)

    def with_changes(self, **changes) -> "SelectionState":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for session storage."""
        return {
            "stream": self.stream.value if self.stream else None,
            "course_type": self.course_type.value if self.course_type else None,
            "category": self.category.value if self.category else None,
            "current_year": self.current_year,
            "had_gap": self.had_gap,
            "is_hosteller": self.is_hosteller,
            "is_direct_second_year": self.is_direct_second_year,
            "login_ready": self.login_ready.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SelectionState":
        """
        Create from dictionary (e.g., from session).

        Values that no longer map to an enum member (old sessions) are
        dropped to None instead of failing.
        """
        data = data or {}
        year = data.get("current_year")
        direct = data.get("is_direct_second_year")
        return cls(
            stream=_parse_enum(Stream, data.get("stream")),
            course_type=_parse_enum(CourseType, data.get("course_type")),
            category=_parse_enum(Category, data.get("category")),
            current_year=int(year) if year is not None else None,
            had_gap=bool(data.get("had_gap", False)),
            is_hosteller=bool(data.get("is_hosteller", False)),
            is_direct_second_year=bool(direct) if direct is not None else None,
            login_ready=LoginReadiness.from_dict(data.get("login_ready")),
        )
