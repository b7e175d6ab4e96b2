"""
Tests for page rasterization and masking.
"""

import io

import fitz
import pytest
from PIL import Image

from blackline.config import RasterConfig
from blackline.engine.geometry import Rect, Size
from blackline.engine.registry import Area
from blackline.errors import PageRenderFailed
from blackline.visual.rasterizer import (
    FitzPageRenderer,
    PageRasterizer,
    mask_regions,
    pixel_box,
)

from conftest import make_pdf

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


class BlankRenderer:
    """Renders every page as a blank sheet of the given mode."""

    def __init__(self, page_size=(150, 200), mode="RGB", color=WHITE):
        self.page_size = page_size
        self.mode = mode
        self.color = color
        self.calls = []

    def render(self, page_index, scale):
        self.calls.append((page_index, scale))
        size = (round(self.page_size[0] * scale), round(self.page_size[1] * scale))
        return Image.new(self.mode, size, self.color)


class FailingRenderer:
    def render(self, page_index, scale):
        raise RuntimeError("corrupt content stream")


def decode(mask):
    return Image.open(io.BytesIO(mask.image_bytes)).convert("RGB")


class TestPageRasterizer:

    def test_masks_projected_area(self):
        renderer = BlankRenderer()
        rasterizer = PageRasterizer(renderer, RasterConfig(oversample=2))
        area = Area(0, 10, 10, 50, 20, capture_width=150, capture_height=200)

        mask = rasterizer.rasterize(0, Size(150, 200), [area])
        image = decode(mask)

        assert (mask.width, mask.height) == (300, 400)
        assert renderer.calls == [(0, 2)]
        # projected region is (20, 20, 100, 40)
        assert image.getpixel((20, 20)) == BLACK
        assert image.getpixel((119, 59)) == BLACK
        assert image.getpixel((120, 60)) == WHITE
        assert image.getpixel((19, 19)) == WHITE

    def test_capture_context_of_other_size(self):
        rasterizer = PageRasterizer(BlankRenderer(), RasterConfig(oversample=2))
        # drawn on a 0.5x thumbnail (75x100)
        area = Area(0, 5, 5, 25, 10, capture_width=75, capture_height=100)
        image = decode(rasterizer.rasterize(0, Size(150, 200), [area]))
        assert image.getpixel((20, 20)) == BLACK
        assert image.getpixel((119, 59)) == BLACK
        assert image.getpixel((121, 61)) == WHITE

    def test_out_of_range_area_is_clamped(self):
        rasterizer = PageRasterizer(BlankRenderer(), RasterConfig(oversample=2))
        area = Area(0, 100, 150, 500, 500, capture_width=150, capture_height=200)
        mask = rasterizer.rasterize(0, Size(150, 200), [area])
        image = decode(mask)
        assert (mask.width, mask.height) == (300, 400)
        assert image.getpixel((299, 399)) == BLACK
        assert image.getpixel((199, 299)) == WHITE

    def test_transparent_render_becomes_white(self):
        renderer = BlankRenderer(mode="RGBA", color=(0, 0, 0, 0))
        image = decode(PageRasterizer(renderer).rasterize(0, Size(150, 200), []))
        assert image.getpixel((10, 10)) == WHITE

    def test_custom_mask_color(self):
        rasterizer = PageRasterizer(BlankRenderer(), RasterConfig(oversample=1, mask_color="#ff0000"))
        area = Area(0, 0, 0, 20, 20, capture_width=150, capture_height=200)
        image = decode(rasterizer.rasterize(0, Size(150, 200), [area]))
        assert image.getpixel((5, 5)) == (255, 0, 0)

    def test_output_is_opaque_png(self):
        mask = PageRasterizer(BlankRenderer()).rasterize(0, Size(150, 200), [])
        image = Image.open(io.BytesIO(mask.image_bytes))
        assert image.format == "PNG"
        assert image.mode == "RGB"

    def test_render_failure_fails_fast(self):
        rasterizer = PageRasterizer(FailingRenderer())
        with pytest.raises(PageRenderFailed) as excinfo:
            rasterizer.rasterize(4, Size(150, 200), [])
        assert excinfo.value.page_index == 4
        assert "corrupt content stream" in str(excinfo.value)

    def test_renders_real_page(self):
        doc = fitz.open(stream=make_pdf(pages=1), filetype="pdf")
        try:
            renderer = FitzPageRenderer(doc)
            image = renderer.render(0, 2)
            assert image.size == (300, 400)
            # the SECRET-0 text leaves dark pixels near its baseline
            assert min(image.crop((40, 60, 140, 84)).convert("L").getdata()) < 128
        finally:
            doc.close()


class TestMaskRegions:

    def test_without_capture_size_uses_raster_pixels(self):
        area = Area(0, 10, 10, 10, 10)
        regions = mask_regions([area], Size(150, 200), Size(300, 400), RasterConfig())
        assert regions == [Rect(10, 10, 10, 10)]

    def test_legacy_capture_scale(self):
        area = Area(0, 10, 10, 10, 10)
        config = RasterConfig(legacy_capture_scale=0.5)
        regions = mask_regions([area], Size(150, 200), Size(300, 400), config)
        assert regions == [Rect(40, 40, 40, 40)]

    def test_registration_order_kept(self):
        areas = [Area(0, 50, 50, 10, 10), Area(0, 0, 0, 10, 10)]
        regions = mask_regions(areas, Size(150, 200), Size(150, 200), RasterConfig())
        assert [r.x for r in regions] == [50, 0]


class TestPixelBox:

    def test_integral_region(self):
        assert pixel_box(Rect(20, 20, 100, 40)) == [20, 20, 119, 59]

    def test_fractional_edges_round_outwards(self):
        assert pixel_box(Rect(10.6, 10.2, 5.1, 5.1)) == [10, 10, 15, 15]

    def test_sub_pixel_region_covers_one_pixel(self):
        assert pixel_box(Rect(3.2, 3.2, 0.3, 0.3)) == [3, 3, 3, 3]
