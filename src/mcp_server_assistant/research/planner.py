"""Task planner: decomposes a research topic into 3-5 sub-tasks."""

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from .models import SubTask
from .prompts import PLANNER_SYSTEM_PROMPT, default_plan, get_planner_prompt

if TYPE_CHECKING:
    from ..llm import CompletionClient

logger = logging.getLogger(__name__)

MIN_TASKS = 3
MAX_TASKS = 5

_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_DECODER = json.JSONDecoder()


def _load_array(text: str) -> list[Any] | None:
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return parsed if isinstance(parsed, list) else None


def extract_json_array(text: str) -> list[Any] | None:
    """Pull a JSON array out of free-form model output.

    Tries the whole text, then a fenced code block, then the first
    ``[`` in the text where a complete JSON array can be decoded.
    """
    parsed = _load_array(text.strip())
    if parsed is not None:
        return parsed

    block = _CODE_BLOCK.search(text)
    if block:
        parsed = _load_array(block.group(1).strip())
        if parsed is not None:
            return parsed

    start = text.find("[")
    while start != -1:
        try:
            parsed, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return parsed
        start = text.find("[", start + 1)

    return None


def is_valid_task(item: Any) -> bool:
    """Structural check of one planned task: int id and non-empty title, intent, query."""
    if not isinstance(item, dict):
        return False
    task_id = item.get("id")
    if not isinstance(task_id, int) or isinstance(task_id, bool):
        return False
    return all(isinstance(item.get(key), str) and item[key].strip() for key in ("title", "intent", "query"))


def normalize_plan(candidates: list[Any] | None, topic: str) -> list[SubTask]:
    """Validate, clamp, pad and renumber a candidate plan.

    The result always holds between 3 and 5 tasks with ids 1..n.
    """
    valid = [item for item in candidates or [] if is_valid_task(item)]
    if not valid:
        logger.warning("No usable tasks in planner output, using default plan")
        valid = default_plan(topic)

    chosen = valid[:MAX_TASKS]
    if len(chosen) < MIN_TASKS:
        logger.warning(f"Planner returned {len(chosen)} task(s), padding from default plan")
        titles = {item["title"].strip().lower() for item in chosen}
        for fallback in default_plan(topic):
            if len(chosen) >= MIN_TASKS:
                break
            if fallback["title"].lower() not in titles:
                chosen.append(fallback)

    return [
        SubTask(
            id=index,
            title=item["title"].strip(),
            intent=item["intent"].strip(),
            query=item["query"].strip(),
        )
        for index, item in enumerate(chosen, start=1)
    ]


class TaskPlanner:
    """Asks the model for a research plan and repairs whatever comes back."""

    def __init__(self, client: "CompletionClient"):
        self.client = client

    async def plan(self, topic: str) -> list[SubTask]:
        """Return the ordered sub-tasks for ``topic``, all pending.

        Raises:
            CompletionError: if the model call itself fails
        """
        logger.info(f"Planning research tasks for: {topic}")
        response = await self.client.generate(get_planner_prompt(topic), PLANNER_SYSTEM_PROMPT)

        candidates = extract_json_array(response)
        if candidates is None:
            logger.warning(f"Failed to parse JSON plan from model response: {response[:200]}")

        tasks = normalize_plan(candidates, topic)
        logger.info(f"Planned {len(tasks)} tasks")
        return tasks
