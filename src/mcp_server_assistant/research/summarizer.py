"""Per-task summarization of search results."""

import logging
from typing import TYPE_CHECKING

from ..exceptions import CompletionError
from .models import SourceItem, SubTask
from .prompts import SUMMARIZER_SYSTEM_PROMPT, get_summarizer_prompt

if TYPE_CHECKING:
    from ..llm import CompletionClient

logger = logging.getLogger(__name__)

MAX_SOURCES = 5
MAX_SNIPPET_LENGTH = 500


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def format_sources(sources: list[SourceItem]) -> str:
    return "\n\n".join(
        f"### Source {index}: {source.title}\nURL: {source.url}\nSnippet: {truncate(source.snippet, MAX_SNIPPET_LENGTH)}"
        for index, source in enumerate(sources[:MAX_SOURCES], start=1)
    )


def no_results_summary(task: SubTask) -> str:
    return (
        f"### {task.title}\n\n"
        "No relevant search results were found. Try adjusting the search keywords or using another search backend."
    )


class TaskSummarizer:
    def __init__(self, client: "CompletionClient"):
        self.client = client

    async def summarize(self, task: SubTask, sources: list[SourceItem]) -> str:
        """Summarize ``sources`` for ``task``.

        Returns a fixed summary without calling the model when ``sources`` is
        empty. Raises ``CompletionError`` when the model returns blank text.
        """
        if not sources:
            return no_results_summary(task)

        logger.info(f"Summarizing task {task.id}: {task.title}")
        prompt = get_summarizer_prompt(task.title, task.intent, task.query, format_sources(sources))
        summary = await self.client.generate(prompt, SUMMARIZER_SYSTEM_PROMPT)
        if not summary.strip():
            raise CompletionError(f"Empty summary for task {task.id}")
        return summary
