"""
Core module for ScholarDocsWeb.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
"""

from .exceptions import (
    ScholarDocsError,
    InvalidSelectionError,
    IncompleteSelectionError,
    ToolJobError,
    InputTooLargeError,
    EmptyJobError,
    DecodeFailedError,
    CannotCompressError,
    MergeTooLargeError,
)

__all__ = [
    "ScholarDocsError",
    "InvalidSelectionError",
    "IncompleteSelectionError",
    "ToolJobError",
    "InputTooLargeError",
    "EmptyJobError",
    "DecodeFailedError",
    "CannotCompressError",
    "MergeTooLargeError",
]
