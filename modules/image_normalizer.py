"""
HEIC/HEIF normalization.

Phones upload HEIC photos that the PDF layout step cannot read. They are
converted to JPEG first. Conversion is best effort: when it fails the
original bytes are passed on and the decode step reports the problem.
"""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Optional

import pillow_heif

from models.tool_job import InputFile
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

NORMALIZED_JPEG_QUALITY = 95


def _jpeg_name(original_name: str) -> str:
    stem = original_name.rsplit(".", 1)[0] if "." in original_name else original_name
    return f"{stem or 'image'}.jpg"


def normalize_image(
    input_file: InputFile,
    log: Optional[logging.Logger] = None,
) -> InputFile:
    """
    Return a JPEG version of a HEIC/HEIF file, anything else unchanged.

    Args:
        input_file: User-supplied file
        log: Logger to report fallbacks on (defaults to module logger)

    Returns:
        Converted InputFile, or the original on failure
    """
    if not input_file.is_heic:
        return input_file

    log = log or logger
    try:
        heif_file = pillow_heif.open_heif(BytesIO(input_file.data))
        image = heif_file.to_pillow().convert("RGB")
        buffer = BytesIO()
        image.save(buffer, format="JPEG", quality=NORMALIZED_JPEG_QUALITY)
    except Exception as e:
        log.warning(f"HEIC conversion failed for '{input_file.original_name}', using original bytes: {e}")
        return input_file

    log.debug(f"Converted '{input_file.original_name}' from HEIC ({input_file.size} -> {buffer.tell()} bytes)")
    return InputFile(
        data=buffer.getvalue(),
        mime_hint="image/jpeg",
        original_name=_jpeg_name(input_file.original_name),
    )
