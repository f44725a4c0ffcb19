"""Helper modules for the ScholarDocsWeb application."""

__all__ = [
    "declarations",
    "document_producer",
    "image_normalizer",
    "pdf_analyzer",
    "predicates",
    "requirement_engine",
]
