"""
Rebuilds the output document page by page.

Pages with a RasterMask are replaced wholesale by a new page of the same
size whose only content is the mask image. Every other page is copied
structurally, keeping its text layer, vectors and searchability. Page order
and page count always match the source.
"""

from __future__ import annotations

import logging
from typing import Mapping

from .backend import fitz, require_backend
from .rasterizer import RasterMask

logger = logging.getLogger(__name__)


def reconstruct_document(source: fitz.Document, masks: Mapping[int, RasterMask]) -> fitz.Document:
    """Return a new in-memory document built from `source` and `masks`."""
    require_backend()
    output = fitz.open()
    for page_index in range(source.page_count):
        mask = masks.get(page_index)
        if mask is None:
            output.insert_pdf(source, from_page=page_index, to_page=page_index)
            continue

        rect = source[page_index].rect
        page = output.new_page(width=rect.width, height=rect.height)
        page.insert_image(page.rect, stream=mask.image_bytes, keep_proportion=False)
        logger.debug(
            "Replaced page %d (%.1fx%.1f pt) with a %dx%d raster",
            page_index, rect.width, rect.height, mask.width, mask.height,
        )
    return output


def serialize(doc: fitz.Document) -> bytes:
    """Deterministic serialization: identical input gives identical bytes."""
    return doc.tobytes(garbage=4, deflate=True, no_new_id=True)
