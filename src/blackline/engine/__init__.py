"""Coordinate model and area bookkeeping shared by the preview and apply paths."""

from .geometry import Point, Rect, Size, normalize_coordinates, points_to_pixels, project_rect
from .registry import Area, AreaRegistry, PageRecord

__all__ = [
    "Point",
    "Rect",
    "Size",
    "normalize_coordinates",
    "points_to_pixels",
    "project_rect",
    "Area",
    "AreaRegistry",
    "PageRecord",
]
