"""
Document tool data models.

A ToolJob is created for every use of the merge / compress /
images-to-PDF tools and discarded once the produced PDF was downloaded.
ToolResult is what the tool worker thread hands back to the request
threads through the ToolResultStore.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional, Tuple


class ToolOperation(Enum):
    """Kind of document tool job."""

    MERGE = "merge"
    COMPRESS = "compress"
    IMAGES_TO_PDF = "images_to_pdf"

    @property
    def default_output_name(self) -> str:
        return {
            ToolOperation.MERGE: "Merged_Document.pdf",
            ToolOperation.COMPRESS: "Compressed_Document.pdf",
            ToolOperation.IMAGES_TO_PDF: "Images_Document.pdf",
        }[self]


class ToolError(Enum):
    """Failure codes shown to the user."""

    INPUT_TOO_LARGE = "input_too_large"
    DECODE_FAILED = "decode_failed"
    CANNOT_COMPRESS_UNDER_TARGET = "cannot_compress_under_target"
    MERGE_TOO_LARGE = "merge_too_large"
    PROCESSING_FAILED = "processing_failed"

    @property
    def message(self) -> str:
        return _ERROR_TEXT[self][0]

    @property
    def suggestion(self) -> str:
        return _ERROR_TEXT[self][1]


_ERROR_TEXT = {
    ToolError.INPUT_TOO_LARGE: (
        "Selected files are too large.",
        "Select files totalling 7 MB or less.",
    ),
    ToolError.DECODE_FAILED: (
        "One of the files could not be read.",
        "Check that the file is a valid image or PDF and try again.",
    ),
    ToolError.CANNOT_COMPRESS_UNDER_TARGET: (
        "Cannot compress further.",
        "Reduce the number of pages and try again.",
    ),
    ToolError.MERGE_TOO_LARGE: (
        "File too large after merge.",
        "Reduce pages or compress the input PDFs first.",
    ),
    ToolError.PROCESSING_FAILED: (
        "Processing failed.",
        "Try again with different files.",
    ),
}


class ToolStatus(Enum):
    """
    Lifecycle of a tool job.

        PENDING -> RUNNING -> (COMPLETED | FAILED) -> RELEASED
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    RELEASED = "released"
    """Output was downloaded and dropped from memory."""


@dataclass(frozen=True)
class InputFile:
    """One user-supplied file, kept in memory only."""

    data: bytes
    mime_hint: str = ""
    original_name: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        if "." not in self.original_name:
            return ""
        return self.original_name.rsplit(".", 1)[1].lower()

    @property
    def is_pdf(self) -> bool:
        return self.mime_hint == "application/pdf" or self.extension == "pdf"

    @property
    def is_heic(self) -> bool:
        return self.mime_hint in ("image/heic", "image/heif") or self.extension in ("heic", "heif")


@dataclass(frozen=True)
class ToolJob:
    """Immutable request for one tool run. Files keep their input order."""

    operation: ToolOperation
    input_files: Tuple[InputFile, ...]

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.input_files)


@dataclass(frozen=True)
class ToolOutput:
    """Produced PDF. Always within the configured size ceiling."""

    data: bytes
    suggested_name: str
    page_count: int = 0
    stage_index: Optional[int] = None
    """Compression stage that produced the file (images to PDF only)."""

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ToolOutcome:
    """Return value of run_document_tool: either an output or an error."""

    output: Optional[ToolOutput] = None
    error: Optional[ToolError] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.output is not None


@dataclass
class ToolResult:
    """
    State of a tool job as seen by request threads.

    Written by the tool worker thread through ToolResultStore, read by
    status and download routes.
    """

    job_id: str
    operation: ToolOperation
    status: ToolStatus = ToolStatus.PENDING
    progress: int = 0
    output: Optional[ToolOutput] = None
    error: Optional[ToolError] = None
    message: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_finished(self) -> bool:
        return self.status in (ToolStatus.COMPLETED, ToolStatus.FAILED, ToolStatus.RELEASED)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for the status endpoint."""
        data = {
            "job_id": self.job_id,
            "operation": self.operation.value,
            "status": self.status.value,
            "progress": self.progress,
            "complete": self.is_finished,
            "error": self.error.value if self.error else None,
            "message": self.message,
        }
        if self.error:
            data["suggestion"] = self.error.suggestion
        if self.output:
            data["size_bytes"] = self.output.size
            data["page_count"] = self.output.page_count
            data["suggested_name"] = self.output.suggested_name
        return data
