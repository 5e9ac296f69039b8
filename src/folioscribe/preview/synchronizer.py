"""Scroll-preserving preview synchronizer.

sync(new_html):
1. Strip AI-provenance marker spans (the producer is not trusted)
2. Record the surface's scroll offsets
3. Patch in place: swap the body content and only the <style>/stylesheet
   nodes of the head, so other head content and live scripts survive
4. On the next frame, restore the offsets on both root and body
5. If in-place patching fails for any reason, fall back to a full reload:
   clear, wait ready, load wholesale, wait ready, restore offsets

Calls are serialized per synchronizer (one per surface) with a lock held for
the whole sync including the scroll restore. There is no pending queue;
callers debounce upstream.
"""

import asyncio
from typing import Literal

from bs4 import BeautifulSoup
from bs4.element import Tag

from folioscribe.preview.surface import RenderSurface
from folioscribe.render.markdown_lite import strip_provenance_markers
from folioscribe.services.exceptions import SurfaceUnreachable
from folioscribe.utils.logging import get_logger


logger = get_logger(__name__)

SyncMode = Literal["patched", "reloaded"]


def is_style_node(tag: Tag) -> bool:
    """True for <style> elements and <link rel="stylesheet">."""
    if tag.name == "style":
        return True
    if tag.name != "link":
        return False
    rel = tag.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    return "stylesheet" in [value.lower() for value in rel]


class PreviewSynchronizer:
    """Applies successive HTML documents to one rendering surface."""

    def __init__(self, surface: RenderSurface):
        self.surface = surface
        self._lock = asyncio.Lock()
        self.sync_count = 0
        self.fallback_count = 0

    async def sync(self, new_html: str) -> SyncMode:
        """Apply ``new_html`` to the surface, preserving scroll position.

        Returns:
            "patched" if applied in place, "reloaded" if the fallback ran

        Raises:
            asyncio.TimeoutError: If the surface never signals ready during a
                full reload
        """
        async with self._lock:
            html = strip_provenance_markers(new_html)
            x, y = self.surface.scroll_position()

            try:
                self._patch_in_place(html)
                mode: SyncMode = "patched"
            except Exception as e:
                logger.warning(
                    "preview_sync_fallback",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self._full_reload(html)
                self.fallback_count += 1
                mode = "reloaded"

            await self.surface.next_frame()
            self._restore_scroll(x, y)
            self.sync_count += 1

            logger.info(
                "preview_synced",
                mode=mode,
                scroll_x=x,
                scroll_y=y,
                html_length=len(html),
            )
            return mode

    def _patch_in_place(self, html: str) -> None:
        document = self.surface.document
        head, body = document.head, document.body
        if head is None or body is None:
            raise SurfaceUnreachable("Surface document has no head or body")

        incoming = BeautifulSoup(html, "html.parser")
        if incoming.body is None:
            raise ValueError("New HTML has no <body>")

        # Parse fully before touching the live tree, so a failure leaves it intact
        new_children = list(incoming.body.contents)
        new_styles = incoming.head.find_all(is_style_node) if incoming.head is not None else []

        body.clear()
        for child in new_children:
            body.append(child.extract())
        body.attrs = dict(incoming.body.attrs)

        for node in head.find_all(is_style_node):
            node.decompose()
        for node in new_styles:
            head.append(node.extract())

        logger.debug(
            "preview_patched_in_place",
            body_nodes=len(new_children),
            style_nodes=len(new_styles),
        )

    async def _full_reload(self, html: str) -> None:
        try:
            await self.surface.clear()
            await self.surface.wait_ready()
            await self.surface.load(html)
            await self.surface.wait_ready()
        except asyncio.TimeoutError:
            logger.error("preview_reload_failed", reason="surface never signalled ready")
            raise

    def _restore_scroll(self, x: int, y: int) -> None:
        # Root and body both, since engines disagree on which element scrolls
        self.surface.set_root_scroll(x, y)
        self.surface.set_body_scroll(x, y)
        logger.debug("preview_scroll_restored", scroll_x=x, scroll_y=y)
