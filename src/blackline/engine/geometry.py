"""
Coordinate normalization between rendering contexts.

Three kinds of space are involved when a rectangle is marked and later
applied:

  1) CAPTURE — pixels of whatever canvas the user drew on (thumbnail,
               zoomed preview, ...). Origin top-left, Y grows downwards.
  2) RASTER  — pixels of the image a redacted page is rebuilt from.
               Same orientation as capture space, different resolution.
  3) POINTS  — PDF user space. Origin bottom-left, Y grows upwards.

Conversions use independent X and Y scale factors. Rotation and shear are
not modelled; pages are assumed axis-aligned.

A missing or zero source dimension yields a scale factor of 1, i.e. the two
spaces are assumed to coincide. Areas recorded before capture dimensions
were tracked still apply that way instead of failing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Tuple, Union


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle: (x, y) is the corner nearest the origin."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, point: Point) -> bool:
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom

    def normalized(self) -> "Rect":
        """Same region with non-negative width and height (drags can run up or left)."""
        if self.width >= 0 and self.height >= 0:
            return self
        return Rect(
            min(self.x, self.right),
            min(self.y, self.bottom),
            abs(self.width),
            abs(self.height),
        )

    def clamped(self, bounds: Size) -> "Rect":
        """Intersect with [0, bounds.width] x [0, bounds.height]."""
        rect = self.normalized()
        x0 = min(max(rect.x, 0.0), bounds.width)
        y0 = min(max(rect.y, 0.0), bounds.height)
        x1 = min(max(rect.right, 0.0), bounds.width)
        y1 = min(max(rect.bottom, 0.0), bounds.height)
        return Rect(x0, y0, max(x1 - x0, 0.0), max(y1 - y0, 0.0))

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Mapping[str, float]) -> "Rect":
        # accept the short w/h spelling used by some callers
        width = data["width"] if "width" in data else data["w"]
        height = data["height"] if "height" in data else data["h"]
        rect = cls(float(data["x"]), float(data["y"]), float(width), float(height))
        return rect.normalized()


SizeLike = Union[Size, Tuple[float, float], None]


def as_size(value: SizeLike) -> Optional[Size]:
    if value is None or isinstance(value, Size):
        return value
    width, height = value
    return Size(width, height)


def _factor(target: float, source: Optional[float]) -> float:
    if not source:
        return 1.0
    return target / source


def scale_factors(source: SizeLike, target: SizeLike) -> Tuple[float, float]:
    """(scale_x, scale_y) mapping `source` onto `target`."""
    src = as_size(source)
    dst = as_size(target)
    if src is None or dst is None:
        return 1.0, 1.0
    return _factor(dst.width, src.width), _factor(dst.height, src.height)


def project_rect(rect: Rect, source: SizeLike, target: SizeLike, clamp: bool = True) -> Rect:
    """
    Pixel -> pixel projection (same orientation, different resolution).

    With `clamp` the result is intersected with the target bounds, so a
    rectangle captured on a context of a different size never paints
    outside the raster.
    """
    sx, sy = scale_factors(source, target)
    projected = Rect(rect.x * sx, rect.y * sy, rect.width * sx, rect.height * sy)
    dst = as_size(target)
    if clamp and dst is not None:
        return projected.clamped(dst)
    return projected


def normalize_coordinates(pixel_rect: Rect, capture_size: SizeLike, page_size: SizeLike) -> Rect:
    """
    Pixel rect on a capture canvas -> rect in PDF points.

    The rectangle's bottom edge in pixel space becomes its y origin in
    point space.
    """
    page = as_size(page_size)
    sx, sy = scale_factors(capture_size, page)
    return Rect(
        x=pixel_rect.x * sx,
        y=page.height - (pixel_rect.y + pixel_rect.height) * sy,
        width=pixel_rect.width * sx,
        height=pixel_rect.height * sy,
    )


def points_to_pixels(point_rect: Rect, page_size: SizeLike, pixel_size: SizeLike) -> Rect:
    """Inverse of `normalize_coordinates`."""
    page = as_size(page_size)
    sx, sy = scale_factors(page, pixel_size)
    return Rect(
        x=point_rect.x * sx,
        y=(page.height - point_rect.y - point_rect.height) * sy,
        width=point_rect.width * sx,
        height=point_rect.height * sy,
    )
