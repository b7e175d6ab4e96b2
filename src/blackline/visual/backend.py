"""Availability of the PDF rendering engine (PyMuPDF)."""

from __future__ import annotations

import logging

try:
    import fitz  # PyMuPDF
    HAS_PYMUPDF = True
except ImportError:
    fitz = None
    HAS_PYMUPDF = False

from ..errors import RenderingBackendUnavailable

logger = logging.getLogger(__name__)


def require_backend() -> None:
    if not HAS_PYMUPDF:
        logger.warning("PyMuPDF not available - PDF redaction disabled")
        raise RenderingBackendUnavailable("PyMuPDF is not installed - PDF rendering disabled")
