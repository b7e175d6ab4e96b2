"""
Interactive marking session.

The session owns the state of one marking workflow: the source document,
the area registry and the page currently shown. It moves through

    IDLE -> RENDERING -> INTERACTIVE -> RENDERING (next page) -> ... -> CLOSED

Rendering runs in a worker thread and cannot be interrupted. Instead every
render captures a token from a monotonically increasing counter, and its
result is applied only if that token is still current when it completes.
Showing another page, loading a new document or closing the session takes a
new token, which turns any render still in flight into a no-op.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from PIL import Image

from .config import BlacklineConfig
from .engine.geometry import Point, Rect, Size
from .engine.registry import Area, AreaRegistry
from .errors import NoAreasSpecified, PageRenderFailed, SessionNotReady
from .visual.rasterizer import FitzPageRenderer, PageRenderer
from .visual.redactor import apply_redactions, open_document, page_sizes

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    RENDERING = "rendering"
    INTERACTIVE = "interactive"
    CLOSED = "closed"


@dataclass
class PreviewFrame:
    """A rendered page as currently shown to the user."""
    page_index: int
    image: Image.Image
    token: int

    @property
    def size(self) -> Size:
        return Size(self.image.width, self.image.height)


class GestureState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTED = "committed"


class DragGesture:
    """
    Press-drag-release input turned into a single rectangle.

    Drags may go in any direction; the committed rectangle is normalized to
    a positive width and height. Drags smaller than `min_size` in either
    dimension commit nothing, so plain clicks never create an area.
    """

    def __init__(self, min_size: float = 5.0) -> None:
        self.min_size = min_size
        self.state = GestureState.IDLE
        self._start: Optional[Point] = None
        self._current: Optional[Point] = None

    def press(self, point: Point) -> None:
        self.state = GestureState.DRAGGING
        self._start = point
        self._current = point

    def move(self, point: Point) -> None:
        if self.state is GestureState.DRAGGING:
            self._current = point

    @property
    def rect(self) -> Optional[Rect]:
        if self._start is None or self._current is None:
            return None
        x0, x1 = sorted((self._start.x, self._current.x))
        y0, y1 = sorted((self._start.y, self._current.y))
        return Rect(x0, y0, x1 - x0, y1 - y0)

    def release(self, point: Optional[Point] = None) -> Optional[Rect]:
        if self.state is not GestureState.DRAGGING:
            return None
        if point is not None:
            self._current = point
        rect = self.rect
        self._start = self._current = None
        if rect is None or rect.width < self.min_size or rect.height < self.min_size:
            self.state = GestureState.IDLE
            return None
        self.state = GestureState.COMMITTED
        return rect

    def cancel(self) -> None:
        self.state = GestureState.IDLE
        self._start = self._current = None


class PreviewSession:
    """Render pages, collect marked areas, and apply them."""

    def __init__(
        self,
        config: Optional[BlacklineConfig] = None,
        renderer: Optional[PageRenderer] = None,
    ) -> None:
        self.config = config or BlacklineConfig()
        self.registry = AreaRegistry(
            min_area_px=self.config.registry.min_area_px,
            delete_control_px=self.config.registry.delete_control_px,
        )
        self.state = SessionState.IDLE
        self.current: Optional[PreviewFrame] = None
        self._token = 0
        self._source: Optional[bytes] = None
        self._document = None
        self._renderer = renderer
        self._injected_renderer = renderer is not None
        self.gesture = DragGesture(min_size=self.config.registry.min_area_px)

    # --- tokens ---

    @property
    def token(self) -> int:
        return self._token

    def _invalidate(self) -> int:
        self._token += 1
        return self._token

    # --- document lifecycle ---

    def load_document(self, source_bytes: bytes) -> int:
        """
        Start over on a new document; returns its page count.

        The new document is parsed before anything is replaced, so an
        unreadable source raises SourceUnreadable and leaves the session,
        its current page and its areas exactly as they were.

        Closing the previous document waits for a render still using it.
        From a running event loop use `aload_document` instead.
        """
        doc = open_document(source_bytes)
        release = self._swap_document(doc, source_bytes)
        release()
        return self.registry.page_count

    async def aload_document(self, source_bytes: bytes) -> int:
        """`load_document` with parsing and closing done in worker threads."""
        doc = await asyncio.to_thread(open_document, source_bytes)
        release = self._swap_document(doc, source_bytes)
        await asyncio.to_thread(release)
        return self.registry.page_count

    def close(self) -> None:
        """
        End the session. Blocks until a render still in flight is done with
        the document; from a running event loop use `aclose` instead.
        """
        release = self._shut()
        release()

    async def aclose(self) -> None:
        release = self._shut()
        await asyncio.to_thread(release)

    def _swap_document(self, doc, source_bytes: bytes) -> Callable[[], None]:
        self._invalidate()
        release = self._detach_document()
        self._source = bytes(source_bytes)
        self._document = doc
        if not self._injected_renderer:
            self._renderer = FitzPageRenderer(doc)
        self.registry.load_pages(page_sizes(doc))
        self.current = None
        self.state = SessionState.IDLE
        logger.info(f"Loaded document with {self.registry.page_count} pages")
        return release

    def _shut(self) -> Callable[[], None]:
        self._invalidate()
        release = self._detach_document()
        self.registry.load_pages([])
        self.current = None
        self.state = SessionState.CLOSED
        return release

    def _detach_document(self) -> Callable[[], None]:
        """Forget the current document; returns the call that closes it."""
        document, renderer = self._document, self._renderer
        self._document = None
        self._source = None
        if document is None:
            return lambda: None
        if isinstance(renderer, FitzPageRenderer):
            # the renderer closes under its lock, after any running render
            self._renderer = None
            return renderer.close
        return document.close

    # --- rendering ---

    async def show_page(self, page_index: int, scale: Optional[float] = None) -> Optional[PreviewFrame]:
        """
        Render `page_index` and make it the current frame.

        Returns None, leaving the session untouched, when a newer render or
        a close superseded this one while it was running.
        """
        if self.state is SessionState.CLOSED or self._renderer is None:
            raise SessionNotReady("No document is loaded")
        self.registry.page(page_index)  # range check

        token = self._invalidate()
        self.state = SessionState.RENDERING
        try:
            image = await asyncio.to_thread(
                self._renderer.render, page_index, scale or self.config.preview.scale
            )
        except Exception as e:
            if token != self._token:
                logger.debug(f"Ignoring failure of superseded render of page {page_index}: {e}")
                return None
            self.state = SessionState.IDLE
            raise PageRenderFailed(page_index, str(e)) from e

        if token != self._token:
            logger.debug(f"Discarding stale render of page {page_index} (token {token} != {self._token})")
            return None

        self.current = PreviewFrame(page_index=page_index, image=image, token=token)
        self.state = SessionState.INTERACTIVE
        return self.current

    # --- marking ---

    def _require_frame(self) -> PreviewFrame:
        if self.current is None or self.state is not SessionState.INTERACTIVE:
            raise SessionNotReady("No page is currently shown")
        return self.current

    def add_area(self, rect: Rect) -> Optional[Area]:
        frame = self._require_frame()
        size = frame.size
        return self.registry.add_area(frame.page_index, rect, size.width, size.height)

    def commit_gesture(self, point: Optional[Point] = None) -> Optional[Area]:
        """Finish the current drag and register its rectangle, if it is large enough."""
        rect = self.gesture.release(point)
        if rect is None:
            return None
        self.gesture.cancel()
        return self.add_area(rect)

    def remove_area_at(self, point: Point) -> Optional[Area]:
        frame = self._require_frame()
        return self.registry.remove_area_at(frame.page_index, point, frame.size)

    def can_apply(self) -> bool:
        return self.registry.count_all() >= 1

    def apply(self) -> bytes:
        """Apply every registered area; the registry is cleared only on success."""
        if self._source is None:
            raise SessionNotReady("No document is loaded")
        if not self.can_apply():
            raise NoAreasSpecified()
        result = apply_redactions(self._source, self.registry.areas(), config=self.config)
        self.registry.clear_all()
        return result
