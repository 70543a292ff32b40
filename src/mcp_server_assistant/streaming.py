"""Base for pipelines that stream their progress as an ordered event sequence."""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from .events import EventChannel, PipelineEvent, ProgressTracker, progress_payload
from .observability import run_context

logger = logging.getLogger(__name__)


class RunCancelled(asyncio.CancelledError):
    """Raised inside a producer once the run's cancel signal is set."""


class StreamingMachine:
    """Runs a producer coroutine and hands its events to one consumer.

    Subclasses implement the producer and call ``_emit``/``_progress``.
    ``cancel()`` is checked before every emission and by ``_checkpoint``
    before each remote call. It also cancels the producer task, so an
    in-flight call or retry back-off is interrupted rather than finished.
    A cancelled run ends without a terminal event.
    """

    pipeline = "pipeline"

    def __init__(self, run_id: str | None = None):
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.tracker = ProgressTracker()
        self._cancelled = asyncio.Event()
        self._channel: EventChannel | None = None
        self._task: asyncio.Task | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        if not self._cancelled.is_set():
            logger.info(f"Cancelling {self.pipeline} run {self.run_id}")
            self._cancelled.set()
        if self._task is not None and not self._task.done() and self._task is not asyncio.current_task():
            self._task.cancel()

    def _checkpoint(self) -> None:
        if self._cancelled.is_set():
            raise RunCancelled()

    async def _emit(self, event: str, data: Any = None) -> None:
        self._checkpoint()
        if self._channel is None:
            raise RuntimeError(f"{self.pipeline} run {self.run_id} emitted '{event}' before streaming started")
        await self._channel.send(PipelineEvent(event, data))

    async def _progress(self, stage: str, percentage: float, message: str | None = None, task_id: int | None = None) -> None:
        self._checkpoint()
        await self._emit("progress", progress_payload(stage, self.tracker.clamp(percentage), message, task_id))

    def _on_producer_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"{self.pipeline} run {self.run_id} failed: {exc!r}", exc_info=exc)

    async def _stream(self, produce: Callable[[], Awaitable[None]]) -> AsyncIterator[PipelineEvent]:
        channel = EventChannel()
        self._channel = channel

        async def _producer() -> None:
            with run_context(self.run_id, self.pipeline) as log:
                log.info("run_started")
                try:
                    await produce()
                    log.info("run_finished")
                except asyncio.CancelledError:
                    if not self.cancelled:
                        raise
                    log.info("run_cancelled")
                finally:
                    channel.close()

        task = asyncio.create_task(_producer())
        task.add_done_callback(self._on_producer_done)
        self._task = task
        try:
            async for event in channel:
                yield event
        finally:
            if not task.done():
                # consumer went away
                self.cancel()
        await task
