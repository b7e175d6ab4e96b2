"""
Page rasterization with opaque masks.

A page that carries at least one area is turned into pixels only:

  1) RENDER — draw the page at the oversampling factor onto an opaque
              white canvas, so transparency in the source cannot let
              anything underneath show through.
  2) PROJECT — map every area from its capture context into this raster's
               pixel space (clamped to the raster bounds).
  3) MASK   — paint an opaque rectangle over every projected area, in
              registration order.

The returned RasterMask holds no text or vector objects, so nothing under
a mask can be recovered from the rebuilt page's content stream.
"""

from __future__ import annotations

import io
import logging
import math
import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

from PIL import Image, ImageColor, ImageDraw

from ..config import RasterConfig
from ..engine.geometry import Rect, Size, SizeLike, as_size, project_rect
from ..engine.registry import Area
from ..errors import PageRenderFailed
from .backend import fitz, require_backend

logger = logging.getLogger(__name__)


@dataclass
class RasterMask:
    """Encoded image of a redacted page plus its pixel size."""
    image_bytes: bytes
    width: int
    height: int


class PageRenderer(Protocol):
    """Renders one page's visual content at `scale` pixels per PDF point."""

    def render(self, page_index: int, scale: float) -> Image.Image:
        ...


class FitzPageRenderer:
    """
    PageRenderer backed by PyMuPDF.

    PyMuPDF documents are not safe to use from several threads at once, and
    the preview session renders in worker threads, so calls are serialized.
    """

    def __init__(self, document: "fitz.Document") -> None:
        require_backend()
        self.document = document
        self._lock = threading.Lock()

    def render(self, page_index: int, scale: float) -> Image.Image:
        with self._lock:
            page = self.document[page_index]
            pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
            return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)

    def close(self) -> None:
        """Close the document once no render is using it."""
        with self._lock:
            self.document.close()


def capture_size_for(area: Area, page_size: Size, config: RasterConfig) -> Optional[Size]:
    """
    The size of the context `area` was drawn on.

    Areas without recorded capture dimensions fall back to the configured
    legacy capture scale, or to the raster itself when none is configured.
    """
    if area.capture_size is not None:
        return area.capture_size
    if config.legacy_capture_scale:
        return Size(page_size.width * config.legacy_capture_scale,
                    page_size.height * config.legacy_capture_scale)
    return None


def mask_regions(areas: Iterable[Area], page_size: SizeLike, raster: Size, config: RasterConfig) -> List[Rect]:
    page = as_size(page_size)
    regions = []
    for area in areas:
        source = capture_size_for(area, page, config)
        regions.append(project_rect(area.rect, source, raster))
    return regions


def pixel_box(region: Rect) -> List[int]:
    """
    Inclusive PIL box covering every pixel the region touches.

    Fractional edges are rounded outwards so a mask never leaves a
    partially covered row or column uncovered.
    """
    x0, y0 = math.floor(region.x), math.floor(region.y)
    x1 = max(math.ceil(region.right) - 1, x0)
    y1 = max(math.ceil(region.bottom) - 1, y0)
    return [x0, y0, x1, y1]


class PageRasterizer:
    """Renders single pages and masks their registered areas."""

    def __init__(self, renderer: PageRenderer, config: Optional[RasterConfig] = None) -> None:
        self.renderer = renderer
        self.config = config or RasterConfig()

    def rasterize(self, page_index: int, page_size: SizeLike, areas: List[Area]) -> RasterMask:
        page = as_size(page_size)
        oversample = self.config.oversample
        try:
            rendered = self.renderer.render(page_index, oversample)
        except Exception as e:
            logger.exception(f"Rendering page {page_index} failed: {e}")
            raise PageRenderFailed(page_index, str(e)) from e

        if not rendered.width or not rendered.height:
            raise PageRenderFailed(page_index, "renderer returned an empty image")
        # The renderer may round differently; its output decides the raster size.
        raster = Size(rendered.width, rendered.height)

        canvas = Image.new("RGB", (int(raster.width), int(raster.height)),
                           ImageColor.getrgb(self.config.background_color))
        if rendered.mode in ("RGBA", "LA", "P"):
            rendered = rendered.convert("RGBA")
            canvas.paste(rendered, (0, 0), rendered)
        else:
            canvas.paste(rendered.convert("RGB"), (0, 0))

        draw = ImageDraw.Draw(canvas)
        fill = ImageColor.getrgb(self.config.mask_color)
        regions = mask_regions(areas, page, raster, self.config)
        for region in regions:
            if region.width <= 0 or region.height <= 0:
                continue  # entirely off the page
            draw.rectangle(pixel_box(region), fill=fill)

        buffer = io.BytesIO()
        canvas.save(buffer, format=self.config.image_format.upper(), optimize=False)
        logger.debug(
            "Rasterized page %d at %dx%d with %d masks",
            page_index, canvas.width, canvas.height, len(regions),
        )
        return RasterMask(image_bytes=buffer.getvalue(), width=canvas.width, height=canvas.height)
