"""
Unit tests for the document producer.

Test images and PDFs are generated in memory. Random noise is used where
a file must resist compression.
"""

import os
from io import BytesIO
from unittest.mock import patch

import pillow_heif
import pytest
from PIL import Image
from pypdf import PdfReader, PdfWriter

from models.requirements import RequirementResult, DocumentRequirement
from models.tool_job import InputFile, ToolError, ToolJob, ToolOperation
from modules.document_producer import (
    COMPRESSION_STAGES,
    ProducerLimits,
    ProgressReporter,
    _flatten,
    render_pdf,
    run_document_tool,
    suggest_file_names,
)
from modules.image_normalizer import normalize_image


TARGET = 230 * 1024


# Fixtures

def _image_bytes(image, fmt="PNG", **params):
    buffer = BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def _noise_image(width, height):
    return Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))


def _blank_pdf(pages=1):
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=595, height=842)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def plain_photo():
    """A flat-colour photo that fits at the first stage."""
    image = Image.new("RGB", (800, 1100), (200, 180, 150))
    return InputFile(_image_bytes(image, "JPEG"), "image/jpeg", "marksheet.jpg")


@pytest.fixture
def noisy_scans():
    """Scenario C: three incompressible images, about 5 MiB in total."""
    return tuple(
        InputFile(_image_bytes(_noise_image(750, 750)), "image/png", f"scan_{i}.png")
        for i in range(3)
    )


@pytest.fixture
def heavy_pdf():
    """A one-page PDF well above the output ceiling."""
    return InputFile(
        _image_bytes(_noise_image(1000, 1000), "PDF", quality=95),
        "application/pdf",
        "heavy.pdf",
    )


# Tests for the compression stage table

class TestCompressionStages:
    """Test that stages only ever get more aggressive."""

    def test_stage_count_and_baseline(self):
        assert len(COMPRESSION_STAGES) == 7
        baseline = COMPRESSION_STAGES[0]
        assert (baseline.quality, baseline.scale, baseline.grayscale) == (0.8, 1.0, False)

    def test_stages_monotonic(self):
        for previous, current in zip(COMPRESSION_STAGES, COMPRESSION_STAGES[1:]):
            assert current.quality <= previous.quality
            assert current.scale <= previous.scale
            assert current.grayscale >= previous.grayscale
            assert (current.quality, current.scale, current.grayscale) != (
                previous.quality, previous.scale, previous.grayscale
            )

    def test_last_stages_grayscale(self):
        assert [s.grayscale for s in COMPRESSION_STAGES[-2:]] == [True, True]

    def test_rendered_size_never_grows(self):
        images = [_noise_image(400, 400)]
        sizes = [len(render_pdf(images, stage)) for stage in COMPRESSION_STAGES]

        assert sizes == sorted(sizes, reverse=True)

    def test_page_is_a4_at_every_stage(self):
        images = [Image.new("RGB", (300, 200), "white")]
        for stage in COMPRESSION_STAGES:
            page = PdfReader(BytesIO(render_pdf(images, stage))).pages[0]
            assert float(page.mediabox.width) == pytest.approx(595.2, abs=1)
            assert float(page.mediabox.height) == pytest.approx(841.9, abs=1)


# Tests for images to PDF

class TestImagesToPdf:
    """Test the images-to-PDF operation."""

    def test_plain_image_fits_first_stage(self, plain_photo):
        outcome = run_document_tool(ToolJob(ToolOperation.IMAGES_TO_PDF, (plain_photo,)))

        assert outcome.ok
        assert outcome.output.stage_index == 0
        assert outcome.output.size <= TARGET
        assert outcome.output.suggested_name == "Images_Document.pdf"
        assert len(PdfReader(BytesIO(outcome.output.data)).pages) == 1

    def test_one_page_per_image(self, plain_photo):
        outcome = run_document_tool(
            ToolJob(ToolOperation.IMAGES_TO_PDF, (plain_photo, plain_photo, plain_photo))
        )

        assert outcome.ok
        assert outcome.output.page_count == 3
        assert len(PdfReader(BytesIO(outcome.output.data)).pages) == 3

    def test_scenario_c_never_oversized(self, noisy_scans):
        """Three noisy images: either a fitting PDF or a clear error."""
        job = ToolJob(ToolOperation.IMAGES_TO_PDF, noisy_scans)
        assert job.total_size <= 7 * 1024 * 1024

        outcome = run_document_tool(job)

        if outcome.ok:
            assert outcome.output.size <= TARGET
        else:
            assert outcome.error is ToolError.CANNOT_COMPRESS_UNDER_TARGET

    def test_cannot_compress_under_tiny_target(self, plain_photo):
        limits = ProducerLimits(target_output_bytes=1000)
        outcome = run_document_tool(
            ToolJob(ToolOperation.IMAGES_TO_PDF, (plain_photo,)), limits=limits
        )

        assert not outcome.ok
        assert outcome.error is ToolError.CANNOT_COMPRESS_UNDER_TARGET
        assert outcome.output is None

    def test_transparent_png_flattened_on_white(self):
        image = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
        flat = _flatten(image)

        assert flat.mode == "RGB"
        assert flat.getpixel((5, 5)) == (255, 255, 255)

    def test_garbage_image(self):
        bad = InputFile(b"definitely not an image", "image/jpeg", "photo.jpg")
        outcome = run_document_tool(ToolJob(ToolOperation.IMAGES_TO_PDF, (bad,)))

        assert outcome.error is ToolError.DECODE_FAILED
        assert "photo.jpg" in outcome.message

    def test_broken_heic_falls_through_to_decode_error(self):
        """HEIC conversion is best effort; the decode step reports the failure."""
        bad = InputFile(b"\x00\x00\x00\x18ftypheic-broken", "image/heic", "IMG_0001.HEIC")
        outcome = run_document_tool(ToolJob(ToolOperation.IMAGES_TO_PDF, (bad,)))

        assert outcome.error is ToolError.DECODE_FAILED


# Tests for HEIC normalization

class TestHeicNormalization:
    """Test conversion of phone HEIC photos."""

    @pytest.fixture
    def heic_photo(self):
        image = Image.new("RGB", (400, 560), (90, 140, 200))
        buffer = BytesIO()
        pillow_heif.from_pillow(image).save(buffer)
        return InputFile(buffer.getvalue(), "image/heic", "IMG_0042.HEIC")

    def test_heic_converted_to_jpeg(self, heic_photo):
        converted = normalize_image(heic_photo)

        assert converted.mime_hint == "image/jpeg"
        assert converted.original_name == "IMG_0042.jpg"
        assert not converted.is_heic
        with Image.open(BytesIO(converted.data)) as image:
            assert image.format == "JPEG"
            assert image.size == (400, 560)

    def test_heic_job_produces_pdf(self, heic_photo):
        outcome = run_document_tool(ToolJob(ToolOperation.IMAGES_TO_PDF, (heic_photo,)))

        assert outcome.ok
        assert outcome.output.page_count == 1
        assert outcome.output.size <= TARGET

    def test_non_heic_untouched(self, plain_photo):
        assert normalize_image(plain_photo) is plain_photo


# Tests for merge / compress

class TestMergePdfs:
    """Test the structural merge path."""

    def test_merge_keeps_order_and_pages(self):
        files = (
            InputFile(_blank_pdf(2), "application/pdf", "first.pdf"),
            InputFile(_blank_pdf(1), "application/pdf", "second.pdf"),
        )
        outcome = run_document_tool(ToolJob(ToolOperation.MERGE, files))

        assert outcome.ok
        assert outcome.output.page_count == 3
        assert outcome.output.suggested_name == "Merged_Document.pdf"
        assert len(PdfReader(BytesIO(outcome.output.data)).pages) == 3

    def test_compress_is_merge_of_one(self):
        files = (InputFile(_blank_pdf(1), "application/pdf", "only.pdf"),)
        outcome = run_document_tool(ToolJob(ToolOperation.COMPRESS, files))

        assert outcome.ok
        assert outcome.output.page_count == 1
        assert outcome.output.suggested_name == "Compressed_Document.pdf"

    def test_scenario_d_merge_too_large(self, heavy_pdf):
        """An oversized merge fails instead of returning a truncated file."""
        assert heavy_pdf.size > TARGET

        outcome = run_document_tool(ToolJob(ToolOperation.MERGE, (heavy_pdf, heavy_pdf)))

        assert not outcome.ok
        assert outcome.error is ToolError.MERGE_TOO_LARGE
        assert outcome.output is None

    def test_non_pdf_rejected(self):
        files = (InputFile(b"hello", "text/plain", "notes.txt"),)
        outcome = run_document_tool(ToolJob(ToolOperation.MERGE, files))

        assert outcome.error is ToolError.DECODE_FAILED

    def test_corrupt_pdf(self):
        files = (InputFile(b"not a pdf at all", "application/pdf", "broken.pdf"),)
        outcome = run_document_tool(ToolJob(ToolOperation.MERGE, files))

        assert outcome.error is ToolError.DECODE_FAILED


# Tests for validation and the job boundary

class TestJobBoundary:
    """Test rejection before processing and error conversion."""

    def test_input_too_large(self, plain_photo):
        limits = ProducerLimits(max_input_bytes=100)
        outcome = run_document_tool(
            ToolJob(ToolOperation.IMAGES_TO_PDF, (plain_photo,)), limits=limits
        )

        assert outcome.error is ToolError.INPUT_TOO_LARGE

    def test_too_large_rejected_before_decoding(self):
        """Oversized garbage reports the size problem, not a decode error."""
        limits = ProducerLimits(max_input_bytes=10)
        junk = InputFile(b"x" * 100, "image/png", "junk.png")
        outcome = run_document_tool(ToolJob(ToolOperation.IMAGES_TO_PDF, (junk,)), limits=limits)

        assert outcome.error is ToolError.INPUT_TOO_LARGE

    def test_empty_job(self):
        outcome = run_document_tool(ToolJob(ToolOperation.MERGE, ()))

        assert outcome.error is ToolError.PROCESSING_FAILED

    def test_unexpected_exception_becomes_processing_failed(self, plain_photo):
        with patch("modules.document_producer.render_pdf", side_effect=RuntimeError("boom")):
            outcome = run_document_tool(ToolJob(ToolOperation.IMAGES_TO_PDF, (plain_photo,)))

        assert outcome.error is ToolError.PROCESSING_FAILED
        assert "boom" in outcome.message

    def test_progress_strictly_increasing(self, plain_photo):
        seen = []
        outcome = run_document_tool(
            ToolJob(ToolOperation.IMAGES_TO_PDF, (plain_photo, plain_photo)),
            on_progress=seen.append,
        )

        assert outcome.ok
        assert seen == sorted(set(seen))
        assert seen[-1] == 100

    def test_progress_on_failure_never_reaches_100(self):
        seen = []
        run_document_tool(
            ToolJob(ToolOperation.MERGE, (InputFile(b"x", "application/pdf", "x.pdf"),)),
            on_progress=seen.append,
        )

        assert seen == sorted(set(seen))
        assert 100 not in seen


# Tests for ProgressReporter

class TestProgressReporter:
    """Test progress clamping and de-duplication."""

    def test_drops_repeats_and_regressions(self):
        seen = []
        reporter = ProgressReporter(seen.append)
        for value in (5, 5, 3, 40, -2, 250):
            reporter.report(value)

        assert seen == [5, 40, 100]
        assert reporter.last == 100

    def test_without_callback(self):
        reporter = ProgressReporter()
        reporter.report(10)

        assert reporter.last == 10


# Tests for output naming

class TestSuggestFileNames:
    """Test the download name shortlist."""

    def test_default_only(self):
        assert suggest_file_names(ToolOperation.MERGE) == ["Merged_Document.pdf"]

    def test_checklist_names_first(self):
        result = RequirementResult(
            academic_docs=(DocumentRequirement("10th Marksheet", file_name="10th_Marksheet.pdf"),),
            government_docs=(DocumentRequirement("Aadhaar Card", file_name="Aadhaar_Card.pdf"),),
        )

        assert suggest_file_names(ToolOperation.COMPRESS, result) == [
            "10th_Marksheet.pdf",
            "Aadhaar_Card.pdf",
            "Compressed_Document.pdf",
        ]
