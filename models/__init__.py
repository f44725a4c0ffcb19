"""
Data models for ScholarDocsWeb.

This module contains immutable dataclasses for:
- SelectionState: Student's wizard answers (stream, course, category, year, ...)
- RequirementResult: Ordered document checklist produced by the engine
- ToolJob / ToolOutput / ToolResult: Document tool requests and results

SelectionState and RequirementResult are frozen so the engine can be
called repeatedly with the same snapshot and results can be cached.
"""

from .selection import (
    Stream,
    CourseType,
    Category,
    LoginReadiness,
    SelectionState,
    COURSES_BY_STREAM,
)
from .requirements import (
    BadgeKind,
    BADGE_DISPLAY,
    DocumentRequirement,
    DeclarationForm,
    DeclarationSet,
    RequirementResult,
)
from .tool_job import (
    ToolOperation,
    ToolError,
    ToolStatus,
    InputFile,
    ToolJob,
    ToolOutput,
    ToolOutcome,
    ToolResult,
)

__all__ = [
    # Selection models
    "Stream",
    "CourseType",
    "Category",
    "LoginReadiness",
    "SelectionState",
    "COURSES_BY_STREAM",
    # Requirement models
    "BadgeKind",
    "BADGE_DISPLAY",
    "DocumentRequirement",
    "DeclarationForm",
    "DeclarationSet",
    "RequirementResult",
    # Tool models
    "ToolOperation",
    "ToolError",
    "ToolStatus",
    "InputFile",
    "ToolJob",
    "ToolOutput",
    "ToolOutcome",
    "ToolResult",
]
