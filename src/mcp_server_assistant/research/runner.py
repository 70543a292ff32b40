"""Task runner: drives one sub-task through search and summarization."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from .models import SubTask, TaskStatus, dedupe_sources

if TYPE_CHECKING:
    from .search import SearchAdapter
    from .summarizer import TaskSummarizer

logger = logging.getLogger(__name__)

FAILED_SUMMARY = "Failed to summarize this task."

StageCallback = Callable[[SubTask], Awaitable[None]]


class TaskRunner:
    """Runs sub-tasks; the only component that changes a task's status.

    ``execute`` never raises for search or model failures: the task ends in
    ``error`` with ``FAILED_SUMMARY``. Cancellation still propagates.
    """

    def __init__(self, search: "SearchAdapter", summarizer: "TaskSummarizer"):
        self.search = search
        self.summarizer = summarizer

    async def execute(self, task: SubTask, backend: str, on_stage: StageCallback | None = None) -> SubTask:
        try:
            task.transition(TaskStatus.SEARCHING)
            if on_stage:
                await on_stage(task)

            sources = await self.search.search(task.query, backend)
            task.sources = dedupe_sources(sources)

            task.transition(TaskStatus.SUMMARIZING)
            if on_stage:
                await on_stage(task)

            task.summary = await self.summarizer.summarize(task, task.sources)
            task.transition(TaskStatus.COMPLETED)
            logger.info(f"Task {task.id} completed with {len(task.sources)} source(s)")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Task {task.id} failed: {e}")
            if not task.status.is_terminal:
                task.transition(TaskStatus.ERROR)
            task.summary = FAILED_SUMMARY
        return task
