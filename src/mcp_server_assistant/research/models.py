"""Data models for deep research runs."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..exceptions import InvalidTransitionError


class TaskStatus(str, Enum):
    """Sub-task lifecycle: pending -> searching -> summarizing -> completed | error."""

    PENDING = "pending"
    SEARCHING = "searching"
    SUMMARIZING = "summarizing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.ERROR)


# Allowed forward moves. ERROR is reachable from every non-terminal state.
_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.SEARCHING, TaskStatus.ERROR}),
    TaskStatus.SEARCHING: frozenset({TaskStatus.SUMMARIZING, TaskStatus.ERROR}),
    TaskStatus.SUMMARIZING: frozenset({TaskStatus.COMPLETED, TaskStatus.ERROR}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.ERROR: frozenset(),
}


@dataclass(frozen=True)
class SourceItem:
    """A search hit attached to a sub-task."""

    title: str
    url: str
    snippet: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "url": self.url, "snippet": self.snippet}


def dedupe_sources(sources: Iterable[SourceItem]) -> list[SourceItem]:
    """Drop repeated URLs, keeping the first occurrence and the original order."""
    seen: set[str] = set()
    unique: list[SourceItem] = []
    for source in sources:
        if source.url in seen:
            continue
        seen.add(source.url)
        unique.append(source)
    return unique


@dataclass
class SubTask:
    """One unit of a research plan."""

    id: int
    title: str
    intent: str
    query: str
    status: TaskStatus = TaskStatus.PENDING
    summary: str | None = None
    sources: list[SourceItem] = field(default_factory=list)

    def transition(self, status: TaskStatus) -> None:
        """Move to ``status``; raises if that would go backwards or skip a terminal state."""
        if status not in _TRANSITIONS[self.status]:
            raise InvalidTransitionError(f"Task {self.id} cannot move from {self.status.value} to {status.value}")
        self.status = status

    def to_plan_item(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "intent": self.intent,
            "query": self.query,
            "status": self.status.value,
        }

    def to_completion_payload(self) -> dict[str, Any]:
        """Payload of the ``task_complete`` event."""
        return {
            "taskId": self.id,
            "summary": self.summary,
            "sources": [s.to_dict() for s in self.sources],
            "status": self.status.value,
        }


@dataclass
class ResearchOutcome:
    """Result of a finished research run."""

    topic: str
    report: str
    tasks: list[SubTask]

    @property
    def tasks_completed(self) -> int:
        return sum(1 for t in self.tasks if t.status == TaskStatus.COMPLETED)
