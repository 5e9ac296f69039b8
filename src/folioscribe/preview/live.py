"""Debounced live preview.

LivePreview is the caller side of the synchronizer: it collapses a burst of
edits into a single compile+sync once the burst has been quiet for the
debounce delay.
"""

import asyncio
from typing import Mapping, Optional

from folioscribe.document.model import DocumentModel
from folioscribe.preview.synchronizer import PreviewSynchronizer
from folioscribe.render.compiler import TemplateCompiler
from folioscribe.services.exceptions import FolioscribeError
from folioscribe.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_DEBOUNCE_MS = 100


class LivePreview:
    """Keeps a rendering surface in step with a DocumentModel."""

    def __init__(
        self,
        model: DocumentModel,
        synchronizer: PreviewSynchronizer,
        template_id: str = "minimal",
        compiler: Optional[TemplateCompiler] = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        field_support_override: Optional[Mapping[str, bool]] = None,
    ):
        self.model = model
        self.synchronizer = synchronizer
        self.compiler = compiler or TemplateCompiler()
        self.compiler.registry.get(template_id)
        self.template_id = template_id
        self.debounce_ms = debounce_ms
        self.field_support_override = field_support_override
        self.render_count = 0
        # Task still inside its debounce window (cancellable)
        self._pending: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def schedule(self) -> None:
        """Request a refresh; restarts the debounce window."""
        if self.pending:
            self._pending.cancel()
        task = asyncio.create_task(self._debounced())
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def edit(self, block_id: str, text: str, editor_id: str) -> bool:
        """Commit a block edit and schedule a refresh.

        Returns:
            False if the block no longer exists
        """
        committed = self.model.commit_edit(block_id, text, editor_id) is not None
        if committed:
            self.schedule()
        return committed

    def set_template(self, template_id: str) -> None:
        """Switch templates and schedule a refresh.

        Raises:
            UnknownTemplate: If the template id is not registered
        """
        self.compiler.registry.get(template_id)
        self.template_id = template_id
        self.schedule()

    async def flush(self) -> None:
        """Run a pending refresh now instead of waiting out the delay."""
        if not self.pending:
            return
        self._pending.cancel()
        self._pending = None
        await self.render()

    async def wait_idle(self) -> None:
        """Wait until every scheduled refresh has finished or been superseded."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._pending = None
        await self.wait_idle()

    async def render(self) -> None:
        """Compile the current projection and sync it to the surface."""
        html = self.compiler.compile(self.template_id, self.model.data, self.field_support_override)
        await self.synchronizer.sync(html)
        self.render_count += 1
        logger.debug("live_preview_rendered", template_id=self.template_id, renders=self.render_count)

    async def _debounced(self) -> None:
        await asyncio.sleep(self.debounce_ms / 1000)
        if self._pending is asyncio.current_task():
            self._pending = None
        try:
            await self.render()
        except (FolioscribeError, asyncio.TimeoutError) as e:
            logger.error("live_preview_failed", template_id=self.template_id, error=str(e))
