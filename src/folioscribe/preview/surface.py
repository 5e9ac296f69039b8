"""Rendering surfaces the preview synchronizer drives.

A surface is a persistent embedded sub-document owned by the caller across
sync calls. RenderSurface is the seam; InMemorySurface is a headless
implementation backed by a BeautifulSoup tree with a simulated viewport.
"""

import asyncio
import hashlib
import math
from abc import ABC, abstractmethod
from typing import Optional

from bs4 import BeautifulSoup

from folioscribe.services.exceptions import SurfaceUnreachable
from folioscribe.utils.logging import get_logger


logger = get_logger(__name__)

BLANK_DOCUMENT = "<!DOCTYPE html><html><head></head><body></body></html>"


class RenderSurface(ABC):
    """An embedded document view with scroll state."""

    @property
    @abstractmethod
    def document(self) -> BeautifulSoup:
        """The live document tree.

        Raises:
            SurfaceUnreachable: If the document cannot be reached for patching
        """

    @abstractmethod
    def scroll_position(self) -> tuple[int, int]:
        """Current (x, y) scroll offsets."""

    @abstractmethod
    def set_root_scroll(self, x: int, y: int) -> None:
        """Set the root element's scroll offsets."""

    @abstractmethod
    def set_body_scroll(self, x: int, y: int) -> None:
        """Set the body element's scroll offsets."""

    @abstractmethod
    async def next_frame(self) -> None:
        """Resolve once layout from pending mutations has settled."""

    @abstractmethod
    async def clear(self) -> None:
        """Replace the content with a blank document."""

    @abstractmethod
    async def load(self, html: str) -> None:
        """Replace the entire content wholesale."""

    @abstractmethod
    async def wait_ready(self) -> None:
        """Resolve once the current content has signalled ready."""


class InMemorySurface(RenderSurface):
    """Headless surface with a simulated viewport.

    Layout height is derived from the body markup length
    (``px_per_char`` pixels per character). Scroll offsets are clamped to the
    scrollable range, and a body swap that changes layout resets them to the
    top on the next frame, the way a reflow does in a browser.

    ``scripts_started`` counts script elements executed by full loads.
    In-place body patches never start scripts.
    """

    def __init__(
        self,
        html: str = BLANK_DOCUMENT,
        viewport_width: int = 1024,
        viewport_height: int = 768,
        px_per_char: float = 1.0,
        ready_timeout: float = 5.0,
    ):
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height
        self.px_per_char = px_per_char
        self.ready_timeout = ready_timeout
        self.detached = False
        self.scripts_started = 0
        self.loads = 0
        self._root_scroll = (0, 0)
        self._body_scroll = (0, 0)
        self._ready: Optional[asyncio.Event] = None
        self._soup = BeautifulSoup(html, "html.parser")
        self.scripts_started += len(self._soup.find_all("script"))
        self._layout_key = self._body_key()

    @property
    def document(self) -> BeautifulSoup:
        if self.detached:
            raise SurfaceUnreachable("Surface document is detached")
        return self._soup

    @property
    def html(self) -> str:
        return str(self._soup)

    def content_height(self) -> int:
        body = self._soup.body
        markup = body.decode_contents() if body is not None else ""
        return max(self.viewport_height, math.ceil(len(markup) * self.px_per_char))

    def content_width(self) -> int:
        return self.viewport_width

    def _clamp(self, x: int, y: int) -> tuple[int, int]:
        max_x = max(0, self.content_width() - self.viewport_width)
        max_y = max(0, self.content_height() - self.viewport_height)
        return min(max(0, int(x)), max_x), min(max(0, int(y)), max_y)

    def _body_key(self) -> str:
        body = self._soup.body
        markup = body.decode_contents() if body is not None else ""
        return hashlib.sha1(markup.encode("utf-8")).hexdigest()

    def _relayout(self) -> None:
        key = self._body_key()
        if key != self._layout_key:
            self._layout_key = key
            self._root_scroll = (0, 0)
            self._body_scroll = (0, 0)
            logger.debug("surface_reflowed", height=self.content_height())

    def scroll_position(self) -> tuple[int, int]:
        if self._root_scroll != (0, 0):
            return self._root_scroll
        return self._body_scroll

    def scroll_to(self, x: int, y: int) -> None:
        """User scroll: moves the root element."""
        self._root_scroll = self._clamp(x, y)

    def set_root_scroll(self, x: int, y: int) -> None:
        self._root_scroll = self._clamp(x, y)

    def set_body_scroll(self, x: int, y: int) -> None:
        self._body_scroll = self._clamp(x, y)

    async def next_frame(self) -> None:
        await asyncio.sleep(0)
        self._relayout()

    def _signal_ready_soon(self) -> None:
        event = asyncio.Event()
        self._ready = event
        asyncio.get_running_loop().call_soon(event.set)

    async def clear(self) -> None:
        self._soup = BeautifulSoup(BLANK_DOCUMENT, "html.parser")
        self.detached = False
        self._relayout()
        self._signal_ready_soon()

    async def load(self, html: str) -> None:
        self._soup = BeautifulSoup(html, "html.parser")
        self.detached = False
        self.loads += 1
        self.scripts_started += len(self._soup.find_all("script"))
        self._relayout()
        self._signal_ready_soon()

    async def wait_ready(self) -> None:
        if self._ready is None:
            return
        await asyncio.wait_for(self._ready.wait(), timeout=self.ready_timeout)
