"""Lightweight PDF analyzer for uploaded and produced documents."""

from __future__ import annotations

from io import BytesIO
from typing import Dict, Any

from pypdf import PdfReader

POINTS_PER_MM = 72 / 25.4


class PDFAnalyzer:
    """Extract minimal metadata, resilient to malformed PDFs."""

    def __init__(self, size_limit_bytes: int | None = None) -> None:
        self.size_limit_bytes = size_limit_bytes

    def analyze(self, data: bytes, name: str = "") -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "name": name,
            "pages": 0,
            "size_kb": round(len(data) / 1024, 2),
            "page_dimensions": [],
            "encrypted": False,
        }
        if self.size_limit_bytes is not None:
            info["within_limit"] = len(data) <= self.size_limit_bytes

        try:
            reader = PdfReader(BytesIO(data))
            info["encrypted"] = reader.is_encrypted
            info["pages"] = len(reader.pages)
            if reader.pages:
                page = reader.pages[0]
                width = round(float(page.mediabox.width) / POINTS_PER_MM, 1)
                height = round(float(page.mediabox.height) / POINTS_PER_MM, 1)
                info["page_dimensions"].append({"width_mm": width, "height_mm": height})
        except Exception as exc:  # pragma: no cover - defensive logging hook
            info["error"] = f"PDF analysis failed: {exc}"

        return info
