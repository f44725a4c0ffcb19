"""
Document producer: images to PDF, PDF merge and PDF compress.

Every operation produces a single PDF no larger than the portal ceiling
(230 KiB by default) or fails with a ToolError. An oversized file is
never returned.

Images to PDF:
    Each image becomes one A4 portrait page. The pages are rendered at
    the stages in COMPRESSION_STAGES, in order, until the PDF fits.

Merge / Compress:
    Pages are copied structurally with pypdf (no re-rasterization) and
    the result is written with compressed content streams and
    de-duplicated objects. Compress is a merge of one file. If the
    result does not fit, the job fails; there is no pixel-level retry
    because these PDFs hold text and vector content.

Usage:
    job = ToolJob(ToolOperation.MERGE, (InputFile(a, "application/pdf", "a.pdf"),
                                        InputFile(b, "application/pdf", "b.pdf")))
    outcome = run_document_tool(job, on_progress=lambda pct: print(pct))
    if outcome.ok:
        save(outcome.output.data)
    else:
        show(outcome.error.message, outcome.error.suggestion)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, List, Optional, Sequence, Tuple

from PIL import Image, ImageOps
from pypdf import PdfReader, PdfWriter

from config import Config
from core.exceptions import (
    CannotCompressError,
    DecodeFailedError,
    EmptyJobError,
    InputTooLargeError,
    MergeTooLargeError,
    ToolJobError,
)
from models.requirements import RequirementResult
from models.tool_job import (
    InputFile,
    ToolError,
    ToolJob,
    ToolOperation,
    ToolOutcome,
    ToolOutput,
)
from modules.image_normalizer import normalize_image
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]


# =============================================================================
# PAGE GEOMETRY AND COMPRESSION STAGES
# =============================================================================

# A4 portrait rendered at BASE_DPI when scale is 1.0
BASE_DPI = 150
A4_WIDTH_PX = 1240
A4_HEIGHT_PX = 1754


@dataclass(frozen=True)
class CompressionStage:
    """One attempt of the images-to-PDF size search."""

    quality: float
    """JPEG quality, 0..1."""

    scale: float
    """Fraction of the base A4 raster size."""

    grayscale: bool = False

    @property
    def jpeg_quality(self) -> int:
        return int(round(self.quality * 100))

    @property
    def page_size_px(self) -> Tuple[int, int]:
        return (
            max(1, int(round(A4_WIDTH_PX * self.scale))),
            max(1, int(round(A4_HEIGHT_PX * self.scale))),
        )

    @property
    def resolution(self) -> float:
        # Keeps the page at A4 in points whatever the pixel size
        return BASE_DPI * self.scale


# Evaluated strictly in order; each stage is at least as aggressive as the last
COMPRESSION_STAGES: Tuple[CompressionStage, ...] = (
    CompressionStage(quality=0.8, scale=1.0),
    CompressionStage(quality=0.8, scale=0.8),
    CompressionStage(quality=0.7, scale=0.7),
    CompressionStage(quality=0.6, scale=0.6),
    CompressionStage(quality=0.5, scale=0.5),
    CompressionStage(quality=0.4, scale=0.5, grayscale=True),
    CompressionStage(quality=0.2, scale=0.4, grayscale=True),
)


@dataclass(frozen=True)
class ProducerLimits:
    """Byte limits for one job."""

    max_input_bytes: int = Config.TOOL_MAX_INPUT_BYTES
    target_output_bytes: int = Config.TOOL_TARGET_OUTPUT_BYTES


class ProgressReporter:
    """
    Forwards progress to a callback, only ever increasing.

    Values are clamped to 0..100; repeated or lower values are dropped.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback
        self._last = -1

    @property
    def last(self) -> int:
        return max(self._last, 0)

    def report(self, percent: int) -> None:
        percent = max(0, min(100, int(percent)))
        if percent <= self._last:
            return
        self._last = percent
        if self._callback:
            self._callback(percent)


# =============================================================================
# ENTRY POINT
# =============================================================================

def run_document_tool(
    job: ToolJob,
    on_progress: Optional[ProgressCallback] = None,
    limits: Optional[ProducerLimits] = None,
    log: Optional[logging.Logger] = None,
) -> ToolOutcome:
    """
    Run one document tool job.

    All failures are caught here and returned as a ToolError; this
    function does not raise.

    Args:
        job: Operation and ordered input files
        on_progress: Called with strictly increasing percentages
        limits: Input and output byte limits (defaults from Config)
        log: Logger for this job (defaults to module logger)

    Returns:
        ToolOutcome with either output or error set
    """
    limits = limits or ProducerLimits()
    log = log or logger
    reporter = ProgressReporter(on_progress)

    log.info(
        f"Running {job.operation.value} on {len(job.input_files)} file(s), "
        f"{job.total_size / 1024:.0f} KB total"
    )

    try:
        validate_job(job, limits)
        reporter.report(5)

        if job.operation is ToolOperation.IMAGES_TO_PDF:
            output = images_to_pdf(job.input_files, limits.target_output_bytes, reporter, log)
        else:
            output = merge_pdfs(job.input_files, job.operation, limits.target_output_bytes, reporter, log)

        reporter.report(100)
        log.info(f"Produced {output.suggested_name}: {output.size / 1024:.0f} KB, {output.page_count} page(s)")
        return ToolOutcome(output=output)

    except ToolJobError as e:
        log.warning(f"{job.operation.value} failed ({e.code.value}): {e.message}")
        return ToolOutcome(error=e.code, message=e.message)

    except Exception as e:
        log.error(f"{job.operation.value} failed unexpectedly: {e}", exc_info=True)
        return ToolOutcome(error=ToolError.PROCESSING_FAILED, message=str(e))


def validate_job(job: ToolJob, limits: ProducerLimits) -> None:
    """Reject jobs before any file is opened."""
    if not job.input_files:
        raise EmptyJobError()
    if job.total_size > limits.max_input_bytes:
        raise InputTooLargeError(job.total_size, limits.max_input_bytes)


# =============================================================================
# IMAGES TO PDF
# =============================================================================

def _flatten(image: Image.Image) -> Image.Image:
    """Convert to RGB, placing transparent areas on white paper."""
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, "white")
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def decode_image(input_file: InputFile, log: logging.Logger) -> Image.Image:
    """Open one upload as an upright RGB image."""
    input_file = normalize_image(input_file, log)
    try:
        image = Image.open(BytesIO(input_file.data))
        image.load()
        image = ImageOps.exif_transpose(image)
    except Exception as e:
        raise DecodeFailedError(input_file.original_name or "image", str(e)) from e
    return _flatten(image)


def render_pdf(images: Sequence[Image.Image], stage: CompressionStage) -> bytes:
    """Lay out one image per A4 page at the given stage and encode as PDF."""
    size = stage.page_size_px
    pages = []
    for image in images:
        page = image.resize(size, Image.Resampling.LANCZOS)
        if stage.grayscale:
            page = page.convert("L")
        pages.append(page)

    buffer = BytesIO()
    pages[0].save(
        buffer,
        format="PDF",
        save_all=True,
        append_images=pages[1:],
        resolution=stage.resolution,
        quality=stage.jpeg_quality,
    )
    return buffer.getvalue()


def images_to_pdf(
    files: Sequence[InputFile],
    target_bytes: int,
    reporter: ProgressReporter,
    log: logging.Logger,
    stages: Sequence[CompressionStage] = COMPRESSION_STAGES,
) -> ToolOutput:
    """
    Convert images to a PDF that fits target_bytes.

    Raises:
        DecodeFailedError: An image cannot be read
        CannotCompressError: No stage produced a small enough PDF
    """
    images: List[Image.Image] = []
    for index, input_file in enumerate(files):
        images.append(decode_image(input_file, log))
        reporter.report(5 + 25 * (index + 1) // len(files))

    smallest: Optional[int] = None
    for index, stage in enumerate(stages):
        data = render_pdf(images, stage)
        log.debug(
            f"Stage {index} (quality={stage.quality}, scale={stage.scale}, "
            f"grayscale={stage.grayscale}): {len(data) / 1024:.0f} KB"
        )
        reporter.report(30 + 65 * (index + 1) // len(stages))

        if len(data) <= target_bytes:
            log.info(f"Stage {index} fits the {target_bytes // 1024} KB limit")
            return ToolOutput(
                data=data,
                suggested_name=ToolOperation.IMAGES_TO_PDF.default_output_name,
                page_count=len(images),
                stage_index=index,
            )
        smallest = len(data) if smallest is None else min(smallest, len(data))

    raise CannotCompressError(smallest or 0, target_bytes, len(images))


# =============================================================================
# MERGE / COMPRESS
# =============================================================================

def _read_pdf(input_file: InputFile) -> PdfReader:
    name = input_file.original_name or "document.pdf"
    if not input_file.is_pdf:
        raise DecodeFailedError(name, "not a PDF file")
    try:
        reader = PdfReader(BytesIO(input_file.data))
        if reader.is_encrypted and not reader.decrypt(""):
            raise DecodeFailedError(name, "PDF is password protected")
        # Forces the page tree to be parsed
        len(reader.pages)
    except DecodeFailedError:
        raise
    except Exception as e:
        raise DecodeFailedError(name, str(e)) from e
    return reader


def merge_pdfs(
    files: Sequence[InputFile],
    operation: ToolOperation,
    target_bytes: int,
    reporter: ProgressReporter,
    log: logging.Logger,
) -> ToolOutput:
    """
    Concatenate PDFs in input order and write them compactly.

    Raises:
        DecodeFailedError: An input is not a readable PDF
        MergeTooLargeError: The written PDF is above target_bytes
    """
    writer = PdfWriter()
    for index, input_file in enumerate(files):
        reader = _read_pdf(input_file)
        writer.append(reader)
        log.debug(f"Appended '{input_file.original_name}' ({len(reader.pages)} page(s))")
        reporter.report(5 + 60 * (index + 1) // len(files))

    for page in writer.pages:
        page.compress_content_streams()
    writer.compress_identical_objects(remove_identicals=True, remove_orphans=True)
    reporter.report(80)

    buffer = BytesIO()
    writer.write(buffer)
    data = buffer.getvalue()
    page_count = len(writer.pages)
    reporter.report(95)

    if len(data) > target_bytes:
        raise MergeTooLargeError(len(data), target_bytes, page_count)

    return ToolOutput(
        data=data,
        suggested_name=operation.default_output_name,
        page_count=page_count,
    )


# =============================================================================
# OUTPUT NAMING
# =============================================================================

def suggest_file_names(
    operation: ToolOperation,
    result: Optional[RequirementResult] = None,
) -> List[str]:
    """
    Shortlist of download names for a produced PDF.

    Canonical checklist names come first when the student's checklist is
    known; the operation's generic name is always offered last.
    """
    names = result.all_file_names() if result else []
    if operation.default_output_name not in names:
        names.append(operation.default_output_name)
    return names
