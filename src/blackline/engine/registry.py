"""
In-memory registry of the rectangles marked on each page.

Each Area remembers the pixel size of the context it was drawn on, so it
can be re-projected onto any other rendering of the same page later.
Areas are never edited in place: they are added, or removed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..errors import InvalidArea
from .geometry import Point, Rect, Size, SizeLike, as_size, project_rect


@dataclass(frozen=True)
class Area:
    """One marked rectangle on one page, in capture-context pixels."""
    page_index: int
    x: float
    y: float
    width: float
    height: float
    capture_width: Optional[float] = None
    capture_height: Optional[float] = None

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height).normalized()

    @property
    def capture_size(self) -> Optional[Size]:
        if not self.capture_width or not self.capture_height:
            return None
        return Size(self.capture_width, self.capture_height)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pageIndex": self.page_index,
            "rect": self.rect.to_dict(),
            "captureWidth": self.capture_width,
            "captureHeight": self.capture_height,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Area":
        try:
            page_index = int(data["pageIndex"])
            rect = Rect.from_dict(data["rect"])
            # canvasWidth/canvasHeight are the older names for the capture size
            capture_width = data.get("captureWidth", data.get("canvasWidth"))
            capture_height = data.get("captureHeight", data.get("canvasHeight"))
            capture_width = float(capture_width) if capture_width else None
            capture_height = float(capture_height) if capture_height else None
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidArea(f"Malformed area {data!r}: {e}") from e
        return cls(
            page_index=page_index,
            x=rect.x,
            y=rect.y,
            width=rect.width,
            height=rect.height,
            capture_width=capture_width,
            capture_height=capture_height,
        )


@dataclass
class PageRecord:
    page_index: int
    width: float   # PDF points
    height: float  # PDF points
    areas: List[Area] = field(default_factory=list)

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)


def coerce_area(value: Any) -> Area:
    if isinstance(value, Area):
        return value
    if isinstance(value, Mapping):
        return Area.from_dict(value)
    raise InvalidArea(f"Unsupported area value: {value!r}")


class AreaRegistry:
    """
    Per-page list of marked Areas for one redaction session.

    Areas are kept in registration order; hit-testing walks that order, so
    when delete controls overlap the oldest area is removed first.
    """

    def __init__(self, min_area_px: float = 5.0, delete_control_px: float = 16.0) -> None:
        self.min_area_px = min_area_px
        self.delete_control_px = delete_control_px
        self._pages: Dict[int, PageRecord] = {}

    # --- pages ---

    def load_pages(self, sizes: Iterable[SizeLike]) -> None:
        """Discard every page and area and register a fresh page list."""
        self._pages = {}
        for index, size in enumerate(sizes):
            size = as_size(size)
            self._pages[index] = PageRecord(index, size.width, size.height)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def page(self, page_index: int) -> PageRecord:
        try:
            return self._pages[page_index]
        except KeyError:
            raise InvalidArea(
                f"Page {page_index} is out of range (document has {len(self._pages)} pages)"
            ) from None

    # --- areas ---

    def add_area(
        self,
        page_index: int,
        rect: Rect,
        capture_width: Optional[float],
        capture_height: Optional[float],
    ) -> Optional[Area]:
        record = self.page(page_index)
        rect = rect.normalized()
        if rect.width < self.min_area_px or rect.height < self.min_area_px:
            return None
        area = Area(
            page_index=page_index,
            x=rect.x,
            y=rect.y,
            width=rect.width,
            height=rect.height,
            capture_width=capture_width,
            capture_height=capture_height,
        )
        record.areas.append(area)
        return area

    def delete_control(self, area: Area, view_size: SizeLike = None) -> Rect:
        """Delete square at the area's top-right corner, in view-context pixels."""
        shown = area.rect
        if view_size is not None:
            shown = project_rect(area.rect, area.capture_size, view_size, clamp=False)
        side = self.delete_control_px
        return Rect(shown.right - side, shown.y, side, side)

    def remove_area_at(self, page_index: int, point: Point, view_size: SizeLike = None) -> Optional[Area]:
        record = self.page(page_index)
        for position, area in enumerate(record.areas):
            if self.delete_control(area, view_size).contains(point):
                return record.areas.pop(position)
        return None

    def clear_page(self, page_index: int) -> None:
        self.page(page_index).areas.clear()

    def clear_all(self) -> None:
        for record in self._pages.values():
            record.areas.clear()

    def count_all(self) -> int:
        return sum(len(record.areas) for record in self._pages.values())

    def areas_for(self, page_index: int) -> List[Area]:
        return list(self.page(page_index).areas)

    def areas(self) -> List[Area]:
        """Every area, ascending by page, registration order within a page."""
        return [area for index in sorted(self._pages) for area in self._pages[index].areas]

    def pages_with_areas(self) -> List[int]:
        return [index for index in sorted(self._pages) if self._pages[index].areas]
