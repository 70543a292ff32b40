"""Tests for per-run logging context."""

import pytest

from mcp_server_assistant.observability import (
    bind_run_context,
    clear_run_context,
    get_current_pipeline,
    get_current_run_id,
    run_context,
)
from mcp_server_assistant.streaming import StreamingMachine


def test_bind_and_clear():
    bind_run_context("abc", "research")
    assert get_current_run_id() == "abc"
    assert get_current_pipeline() == "research"

    clear_run_context()
    assert get_current_run_id() is None
    assert get_current_pipeline() is None


def test_run_context_clears_on_exit():
    with run_context("r1", "news"):
        assert get_current_run_id() == "r1"
    assert get_current_run_id() is None


def test_run_context_clears_on_error():
    with pytest.raises(RuntimeError):
        with run_context("r2", "news"):
            raise RuntimeError("boom")
    assert get_current_pipeline() is None


class ContextMachine(StreamingMachine):
    pipeline = "context-check"

    def run(self):
        async def produce():
            await self._emit("seen", {"runId": get_current_run_id(), "pipeline": get_current_pipeline()})

        return self._stream(produce)


@pytest.mark.anyio
async def test_producer_runs_inside_run_context():
    events = [e async for e in ContextMachine(run_id="ctx-1").run()]
    assert events[0].data == {"runId": "ctx-1", "pipeline": "context-check"}
