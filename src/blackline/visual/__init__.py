"""Visual redaction module: rebuilds marked pages as masked rasters."""

from .rasterizer import (
    FitzPageRenderer,
    PageRasterizer,
    PageRenderer,
    RasterMask,
)
from .redactor import (
    VisualRedactor,
    RedactionResult,
    apply_redactions,
    create_redacted_preview,
    inspect_document,
)
from .sanitizer import metadata_is_clean, sanitize_metadata

__all__ = [
    "FitzPageRenderer",
    "PageRasterizer",
    "PageRenderer",
    "RasterMask",
    "VisualRedactor",
    "RedactionResult",
    "apply_redactions",
    "create_redacted_preview",
    "inspect_document",
    "metadata_is_clean",
    "sanitize_metadata",
]
