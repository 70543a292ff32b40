"""Pipeline event protocol: event records, an async channel, and SSE encoding."""

import asyncio
import json
import math
from dataclasses import dataclass
from typing import Any

TERMINAL_EVENTS = frozenset({"done", "error"})

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@dataclass(frozen=True)
class PipelineEvent:
    """One message of the ordered event stream."""

    event: str
    data: Any = None

    @property
    def is_terminal(self) -> bool:
        return self.event in TERMINAL_EVENTS

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.event, "data": self.data}


def encode_sse(event: PipelineEvent) -> str:
    """Format an event as a single SSE ``data:`` message."""
    return f"data: {json.dumps(event.to_dict(), ensure_ascii=False)}\n\n"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ProgressTracker:
    """Keeps emitted percentages within 0-100 and never below the previous value."""

    def __init__(self) -> None:
        self.last = 0

    def clamp(self, percentage: float) -> int:
        value = min(100, max(self.last, round_half_up(percentage)))
        self.last = value
        return value


def progress_payload(stage: str, percentage: int, message: str | None = None, task_id: int | None = None) -> dict[str, Any]:
    """Wire payload of a ``progress`` event: ``{stage, percentage, task, taskId?}``."""
    payload: dict[str, Any] = {"stage": stage, "percentage": percentage, "task": message}
    if task_id is not None:
        payload["taskId"] = task_id
    return payload


_CLOSED = object()


class EventChannel:
    """Unbounded async queue of events with an explicit close marker.

    Producers ``await send(...)`` and finally ``close()``; the consumer
    iterates with ``async for`` until the channel is closed.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, event: PipelineEvent) -> None:
        if self._closed:
            raise RuntimeError("Cannot send on a closed event channel")
        await self._queue.put(event)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "EventChannel":
        return self

    async def __anext__(self) -> PipelineEvent:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item
