"""
Custom exceptions for ScholarDocsWeb.

Exception Hierarchy:
    ScholarDocsError (base)
    ├── InvalidSelectionError        - Illegal wizard choice (runtime, 400)
    │   └── IncompleteSelectionError - Engine called before the wizard finished
    └── ToolJobError                 - Document tool job failed (runtime, graceful)
        ├── InputTooLargeError       - Input files above the size limit
        ├── EmptyJobError            - Nothing to process
        ├── DecodeFailedError        - A file could not be read
        ├── CannotCompressError      - No compression stage fits the ceiling
        └── MergeTooLargeError       - Merged PDF above the ceiling

Usage:
    ToolJobError subclasses never reach the UI as exceptions. The producer
    catches them at the job boundary and turns them into ToolError codes.
    IncompleteSelectionError signals a caller bug and is not recovered.
"""

from typing import Optional, Dict, Any

from models.tool_job import ToolError


class ScholarDocsError(Exception):
    """
    Base exception for all ScholarDocsWeb errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# SELECTION ERRORS - Wizard input was not acceptable
# =============================================================================

class InvalidSelectionError(ScholarDocsError):
    """
    A wizard choice is not allowed for the current selection.

    Examples: a course that belongs to another stream, a year above the
    course length, the hostel question answered for a category that has
    no hostel scheme.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, details)
        self.field = field


class IncompleteSelectionError(InvalidSelectionError):
    """
    The requirement engine was called with unresolved fields.

    This is a caller bug: the wizard only shows the checklist once
    stream, category and year are chosen.
    """

    def __init__(self, missing: list):
        message = f"Selection is incomplete, missing: {', '.join(missing)}"
        super().__init__(message, field=missing[0] if missing else None)
        self.details["missing"] = list(missing)
        self.missing = list(missing)


# =============================================================================
# TOOL ERRORS - Job fails, user gets an actionable message
# =============================================================================

class ToolJobError(ScholarDocsError):
    """
    Base class for document tool failures.

    Each subclass carries the ToolError code reported to the UI.
    """

    code: ToolError = ToolError.PROCESSING_FAILED

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        error_details = dict(details or {})
        error_details.setdefault("resolution", self.code.suggestion)
        super().__init__(message, error_details)


class InputTooLargeError(ToolJobError):
    """Total size of the submitted files is above the tool input limit."""

    code = ToolError.INPUT_TOO_LARGE

    def __init__(self, total_bytes: int, limit_bytes: int):
        message = (
            f"Selected files are {total_bytes / (1024 * 1024):.1f} MB, "
            f"limit is {limit_bytes / (1024 * 1024):.0f} MB"
        )
        super().__init__(message, {"total_bytes": total_bytes, "limit_bytes": limit_bytes})
        self.total_bytes = total_bytes
        self.limit_bytes = limit_bytes


class EmptyJobError(ToolJobError):
    """The job has no input files."""

    code = ToolError.PROCESSING_FAILED

    def __init__(self):
        super().__init__("No files were provided", {"resolution": "Select at least one file"})


class DecodeFailedError(ToolJobError):
    """A single input file could not be decoded as an image or PDF."""

    code = ToolError.DECODE_FAILED

    def __init__(self, file_name: str, reason: str = ""):
        message = f"Could not read '{file_name}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, {"file_name": file_name})
        self.file_name = file_name


class CannotCompressError(ToolJobError):
    """Every compression stage produced a PDF above the ceiling."""

    code = ToolError.CANNOT_COMPRESS_UNDER_TARGET

    def __init__(self, smallest_bytes: int, target_bytes: int, page_count: int):
        message = (
            f"Smallest result was {smallest_bytes // 1024} KB for {page_count} page(s), "
            f"limit is {target_bytes // 1024} KB"
        )
        super().__init__(message, {
            "smallest_bytes": smallest_bytes,
            "target_bytes": target_bytes,
            "page_count": page_count,
        })
        self.smallest_bytes = smallest_bytes
        self.target_bytes = target_bytes


class MergeTooLargeError(ToolJobError):
    """Merged (or compressed) PDF is above the ceiling."""

    code = ToolError.MERGE_TOO_LARGE

    def __init__(self, size_bytes: int, target_bytes: int, page_count: int):
        message = (
            f"Merged PDF is {size_bytes // 1024} KB for {page_count} page(s), "
            f"limit is {target_bytes // 1024} KB"
        )
        super().__init__(message, {
            "size_bytes": size_bytes,
            "target_bytes": target_bytes,
            "page_count": page_count,
        })
        self.size_bytes = size_bytes
        self.target_bytes = target_bytes
