"""Shared fixtures: small PDFs generated with PyMuPDF."""

import fitz
import pytest

PAGE_WIDTH = 150
PAGE_HEIGHT = 200


def make_pdf(pages: int = 3, width: float = PAGE_WIDTH, height: float = PAGE_HEIGHT, metadata: bool = True) -> bytes:
    """A PDF whose page N carries the text SECRET-N near its top-left corner."""
    doc = fitz.open()
    for index in range(pages):
        page = doc.new_page(width=width, height=height)
        page.insert_text((20, 40), f"SECRET-{index}", fontsize=12)
        page.draw_rect(fitz.Rect(20, 120, 120, 160), color=(0, 0, 1), width=2)
    if metadata:
        doc.set_metadata({
            "title": "Quarterly report",
            "author": "Jane Doe",
            "subject": "Confidential",
            "keywords": "secret, internal",
            "producer": "ReportGen 2.1",
            "creator": "Writer",
        })
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_bytes() -> bytes:
    return make_pdf()


@pytest.fixture
def single_page_pdf() -> bytes:
    return make_pdf(pages=1)


def area(page_index=0, x=10, y=10, width=90, height=40, capture=(PAGE_WIDTH, PAGE_HEIGHT)):
    """Wire-form area; the default covers the SECRET-N text of its page."""
    return {
        "pageIndex": page_index,
        "rect": {"x": x, "y": y, "width": width, "height": height},
        "captureWidth": capture[0] if capture else None,
        "captureHeight": capture[1] if capture else None,
    }
