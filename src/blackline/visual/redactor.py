"""
Visual redaction engine that permanently removes marked page content.

A page carrying at least one area is rebuilt from a masked raster image, so
the text, vector paths and embedded objects underneath a mask no longer
exist in the output. Pages without areas are copied through untouched.

The operation is all-or-nothing: any failure raises a RedactionError and no
partially redacted document is returned.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from ..config import BlacklineConfig
from ..engine.geometry import Size
from ..engine.registry import Area, coerce_area
from ..errors import InvalidArea, NoAreasSpecified, RedactionError, SourceUnreadable
from .backend import fitz, require_backend
from .rasterizer import FitzPageRenderer, PageRasterizer, PageRenderer, RasterMask
from .reconstructor import reconstruct_document, serialize
from .sanitizer import sanitize_metadata

logger = logging.getLogger(__name__)

AreaLike = Union[Area, Dict[str, Any]]


@dataclass
class RedactionResult:
    """Result of visual redaction operation."""
    success: bool
    output_path: str
    error_message: str = ""
    redacted_count: int = 0
    file_size_bytes: int = 0


def open_document(source_bytes: bytes) -> "fitz.Document":
    """Open PDF bytes, raising SourceUnreadable for anything that is not a readable PDF."""
    require_backend()
    if not source_bytes:
        raise SourceUnreadable("Source document is empty")
    try:
        doc = fitz.open(stream=bytes(source_bytes), filetype="pdf")
    except Exception as e:
        raise SourceUnreadable(f"Cannot parse source document: {e}") from e
    if doc.needs_pass:
        doc.close()
        raise SourceUnreadable("Source document is encrypted")
    if doc.page_count == 0:
        doc.close()
        raise SourceUnreadable("Source document has no pages")
    return doc


def page_sizes(doc: "fitz.Document") -> List[Size]:
    return [Size(page.rect.width, page.rect.height) for page in doc]


def inspect_document(source_bytes: bytes) -> List[Size]:
    """Page count and document-space page sizes (points) of a PDF."""
    doc = open_document(source_bytes)
    try:
        return page_sizes(doc)
    finally:
        doc.close()


def group_areas(areas: Iterable[AreaLike], page_count: int) -> Dict[int, List[Area]]:
    """Areas by page index, registration order kept within each page."""
    grouped: Dict[int, List[Area]] = {}
    for value in areas:
        area = coerce_area(value)
        if not 0 <= area.page_index < page_count:
            raise InvalidArea(
                f"Area references page {area.page_index} but the document has {page_count} pages"
            )
        grouped.setdefault(area.page_index, []).append(area)
    return grouped


def apply_redactions(
    source_bytes: bytes,
    areas: Sequence[AreaLike],
    config: Optional[BlacklineConfig] = None,
    renderer: Optional[PageRenderer] = None,
) -> bytes:
    """
    Redact `areas` out of the PDF in `source_bytes` and return the new PDF.

    Args:
        source_bytes: Original PDF, never modified
        areas: Area objects or their dict form
               ({pageIndex, rect: {x, y, width, height}, captureWidth, captureHeight})
        config: Rasterization and sanitization settings
        renderer: Page-render service; PyMuPDF on the source by default

    Raises:
        NoAreasSpecified, SourceUnreadable, InvalidArea, PageRenderFailed,
        RenderingBackendUnavailable
    """
    if not areas:
        raise NoAreasSpecified()
    cfg = config or BlacklineConfig()

    source = open_document(source_bytes)
    output = None
    try:
        sizes = page_sizes(source)
        by_page = group_areas(areas, len(sizes))
        rasterizer = PageRasterizer(renderer or FitzPageRenderer(source), cfg.raster)

        masks: Dict[int, RasterMask] = {}
        for page_index in sorted(by_page):
            masks[page_index] = rasterizer.rasterize(page_index, sizes[page_index], by_page[page_index])

        output = reconstruct_document(source, masks)
        sanitize_metadata(output, cfg.sanitize.fields)
        result = serialize(output)
    finally:
        if output is not None:
            output.close()
        source.close()

    logger.info(
        f"Redacted {len(masks)} of {len(sizes)} pages ({sum(len(a) for a in by_page.values())} areas)"
    )
    return result


def create_redacted_preview(
    source_bytes: bytes,
    page_index: int,
    areas: Sequence[AreaLike],
    scale: Optional[float] = None,
    config: Optional[BlacklineConfig] = None,
) -> bytes:
    """
    PNG of one page with its masks painted on, at `scale` pixels per point.

    Useful for showing the user what the applied result will look like
    before committing to it.
    """
    cfg = config or BlacklineConfig()
    raster_cfg = cfg.raster.model_copy(update={"oversample": scale or cfg.preview.scale})
    source = open_document(source_bytes)
    try:
        sizes = page_sizes(source)
        if not 0 <= page_index < len(sizes):
            raise InvalidArea(f"Page {page_index} is out of range (document has {len(sizes)} pages)")
        page_areas = group_areas(areas, len(sizes)).get(page_index, [])
        mask = PageRasterizer(FitzPageRenderer(source), raster_cfg).rasterize(
            page_index, sizes[page_index], page_areas
        )
    finally:
        source.close()
    return mask.image_bytes


class VisualRedactor:
    """
    File-level wrapper around `apply_redactions`.

    Failures are reported in the returned RedactionResult instead of being
    raised, for callers that process documents in bulk.
    """

    def __init__(self, config: Optional[BlacklineConfig] = None):
        self.config = config or BlacklineConfig()

    def redact_bytes(self, source_bytes: bytes, areas: Sequence[AreaLike]) -> bytes:
        return apply_redactions(source_bytes, areas, config=self.config)

    def redact_document(
        self,
        input_path: Union[str, Path, io.BytesIO],
        areas: Sequence[AreaLike],
        output_path: Union[str, Path],
    ) -> RedactionResult:
        """
        Redact a PDF and write the result to `output_path`.

        Args:
            input_path: Path to input PDF or BytesIO buffer
            areas: Areas to redact
            output_path: Path for redacted output

        Returns:
            RedactionResult with success status and metadata
        """
        try:
            if isinstance(input_path, io.BytesIO):
                source_bytes = input_path.getvalue()
            else:
                source_bytes = Path(input_path).read_bytes()

            redacted = self.redact_bytes(source_bytes, areas)
            Path(output_path).write_bytes(redacted)

            pages = {coerce_area(area).page_index for area in areas}
            return RedactionResult(
                success=True,
                output_path=str(output_path),
                redacted_count=len(pages),
                file_size_bytes=len(redacted),
            )
        except (RedactionError, OSError) as e:
            logger.exception(f"Redaction failed: {e}")
            return RedactionResult(
                success=False,
                output_path="",
                error_message=str(e),
            )
