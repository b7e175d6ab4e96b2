"""
Error kinds raised by the redaction engine.

Every error is terminal for an `apply_redactions` call: nothing is retried
and no partially redacted document is ever returned.
"""

from __future__ import annotations

from typing import Optional


class RedactionError(Exception):
    """Base class for all redaction failures."""


class SourceUnreadable(RedactionError):
    """The source document bytes could not be parsed as a PDF."""


class PageRenderFailed(RedactionError):
    """A page carrying redaction areas could not be rasterized."""

    def __init__(self, page_index: int, reason: Optional[str] = None) -> None:
        self.page_index = page_index
        message = f"Rendering page {page_index} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NoAreasSpecified(RedactionError):
    """Apply was requested without any marked region."""

    def __init__(self, message: str = "At least one redaction area is required") -> None:
        super().__init__(message)


class RenderingBackendUnavailable(RedactionError):
    """The rendering engine (PyMuPDF) is not installed."""


class InvalidArea(RedactionError):
    """An area references a page the source document does not have, or is malformed."""


class SessionNotReady(RedactionError):
    """A preview session operation needs a loaded document or a shown page."""
