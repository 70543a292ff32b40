"""Research state machine: plan, execute sub-tasks, write the report, streaming events."""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from ..events import PipelineEvent
from ..streaming import RunCancelled, StreamingMachine
from .models import ResearchOutcome, SubTask, TaskStatus

if TYPE_CHECKING:
    from .planner import TaskPlanner
    from .runner import TaskRunner
    from .writer import ReportWriter

logger = logging.getLogger(__name__)


class ResearchMachine(StreamingMachine):
    """Deep research workflow emitting ``start, progress, plan, task_complete, report, done|error``.

    Usage:
        machine = ResearchMachine(planner, runner, writer)
        async for event in machine.run("quantum computing", "tavily"):
            ...

    After a successful run ``machine.outcome`` holds the report and tasks.
    """

    pipeline = "research"

    def __init__(
        self,
        planner: "TaskPlanner",
        runner: "TaskRunner",
        writer: "ReportWriter",
        max_concurrency: int = 1,
        run_id: str | None = None,
    ):
        super().__init__(run_id)
        self.planner = planner
        self.runner = runner
        self.writer = writer
        self.max_concurrency = max(1, max_concurrency)
        self.tasks: list[SubTask] = []
        self.outcome: ResearchOutcome | None = None

    def run(self, topic: str, backend: str) -> AsyncIterator[PipelineEvent]:
        return self._stream(lambda: self._produce(topic, backend))

    async def _produce(self, topic: str, backend: str) -> None:
        await self._emit("start", {"topic": topic, "searchBackend": backend})
        try:
            await self._execute(topic, backend)
        except RunCancelled:
            raise
        except Exception as e:
            message = str(e) or "Research failed"
            logger.error(f"Research on '{topic}' failed: {message}")
            await self._emit("error", {"message": message})

    async def _execute(self, topic: str, backend: str) -> None:
        # Phase 1: Planning
        await self._progress("planning", 5, "Analyzing research topic...")
        self._checkpoint()
        self.tasks = await self.planner.plan(topic)
        await self._emit("plan", [task.to_plan_item() for task in self.tasks])
        await self._progress("planning", 10, f"Planned {len(self.tasks)} research tasks")

        # Phase 2: Executing sub-tasks
        if self.max_concurrency == 1:
            for index, task in enumerate(self.tasks):
                self._checkpoint()
                await self.runner.execute(task, backend, self._stage_callback(index))
                await self._emit("task_complete", task.to_completion_payload())
        else:
            await self._execute_concurrently(backend)

        # Phase 3: Reporting
        await self._progress("reporting", 85, "Writing research report...")
        self._checkpoint()
        report = await self.writer.write(topic, self.tasks)
        await self._progress("reporting", 95, "Report complete")
        await self._emit("report", report)

        self.outcome = ResearchOutcome(topic=topic, report=report, tasks=self.tasks)
        await self._emit(
            "done",
            {
                "topic": topic,
                "tasksCompleted": self.outcome.tasks_completed,
                "totalTasks": len(self.tasks),
            },
        )

    async def _execute_concurrently(self, backend: str) -> None:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _run(index: int, task: SubTask) -> SubTask:
            async with semaphore:
                self._checkpoint()
                return await self.runner.execute(task, backend, self._stage_callback(index))

        pending = [asyncio.create_task(_run(i, task)) for i, task in enumerate(self.tasks)]
        try:
            # completion events go out in plan order
            for future in pending:
                task = await future
                await self._emit("task_complete", task.to_completion_payload())
        finally:
            for future in pending:
                if not future.done():
                    future.cancel()

    def _stage_callback(self, index: int):
        total = len(self.tasks)
        base = 10 + index / total * 70

        async def on_stage(task: SubTask) -> None:
            if task.status == TaskStatus.SEARCHING:
                await self._progress("executing", base, f"Searching: {task.title}", task.id)
            elif task.status == TaskStatus.SUMMARIZING:
                await self._progress("executing", base + 35 / total, f"Summarizing: {task.title}", task.id)

        return on_stage
