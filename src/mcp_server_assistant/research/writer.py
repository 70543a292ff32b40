"""Report writer: merges completed sub-task summaries into one document."""

import logging
from typing import TYPE_CHECKING

from .models import SubTask, TaskStatus
from .prompts import REPORT_WRITER_SYSTEM_PROMPT, get_report_prompt

if TYPE_CHECKING:
    from ..llm import CompletionClient

logger = logging.getLogger(__name__)

FOOTER = "---\n*This report was generated automatically by the research assistant.*"


def completed_tasks(tasks: list[SubTask]) -> list[SubTask]:
    return [t for t in tasks if t.status == TaskStatus.COMPLETED and t.summary]


def format_summaries(tasks: list[SubTask]) -> str:
    blocks = []
    for task in completed_tasks(tasks):
        sources_line = f"\nSources consulted: {len(task.sources)}" if task.sources else ""
        blocks.append(f"## Task {task.id}: {task.title}\nIntent: {task.intent}{sources_line}\n\n### Summary\n{task.summary}")
    return "\n\n---\n\n".join(blocks)


def degraded_report(topic: str) -> str:
    return f"""# {topic} Research Report

## Summary

No research task completed successfully, so a full report could not be produced.

## Suggestions

1. Check the network connection
2. Try a different search backend
3. Rephrase the research topic

{FOOTER}"""


def failed_report(topic: str) -> str:
    return f"""# {topic} Research Report

## Summary

Report generation failed. Please try again later.

{FOOTER}"""


class ReportWriter:
    def __init__(self, client: "CompletionClient"):
        self.client = client

    async def write(self, topic: str, tasks: list[SubTask]) -> str:
        """Write the final report for ``topic``.

        No model call is made when no task completed. Exceptions from the
        model call propagate to the caller.
        """
        done = completed_tasks(tasks)
        if not done:
            logger.warning(f"No completed tasks for '{topic}', returning degraded report")
            return degraded_report(topic)

        logger.info(f"Writing report for '{topic}' from {len(done)} summaries")
        report = await self.client.generate(
            get_report_prompt(topic, len(done), format_summaries(tasks)),
            REPORT_WRITER_SYSTEM_PROMPT,
        )
        if not report.strip():
            logger.warning("Model returned an empty report")
            return failed_report(topic)
        return report
