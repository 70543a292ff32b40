"""Tests for the completion client."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from mcp_server_assistant.exceptions import CompletionError
from mcp_server_assistant.llm import CompletionClient


def make_llm(*results):
    llm = MagicMock()
    llm.model = "test-model"
    llm.ainvoke = AsyncMock(side_effect=list(results))
    return llm


class TestCompletionClient:
    @pytest.mark.anyio
    async def test_returns_completion_text(self):
        llm = make_llm(SimpleNamespace(completion="hello"))
        client = CompletionClient(llm)

        assert await client.generate("prompt", "system") == "hello"

        messages = llm.ainvoke.call_args.args[0]
        assert messages[0].content == "system"
        assert messages[1].content == "prompt"

    @pytest.mark.anyio
    async def test_none_completion_becomes_empty_string(self):
        client = CompletionClient(make_llm(SimpleNamespace(completion=None)))
        assert await client.generate("p", "s") == ""

    @pytest.mark.anyio
    async def test_retries_then_succeeds(self):
        llm = make_llm(RuntimeError("flaky"), SimpleNamespace(completion="ok"))
        client = CompletionClient(llm, max_retries=2, retry_backoff=0)

        assert await client.generate("p", "s") == "ok"
        assert llm.ainvoke.await_count == 2

    @pytest.mark.anyio
    async def test_exhausted_retries_raise_completion_error(self):
        llm = make_llm(RuntimeError("down"), RuntimeError("down"), RuntimeError("still down"))
        client = CompletionClient(llm, max_retries=2, retry_backoff=0)

        with pytest.raises(CompletionError, match="still down"):
            await client.generate("p", "s")
        assert llm.ainvoke.await_count == 3

    @pytest.mark.anyio
    async def test_timeout(self):
        async def slow(messages):
            await asyncio.sleep(1)

        llm = MagicMock()
        llm.ainvoke = slow
        client = CompletionClient(llm, timeout=0.01, max_retries=0)

        with pytest.raises(CompletionError, match="TimeoutError"):
            await client.generate("p", "s")

    @pytest.mark.anyio
    async def test_cancellation_is_not_retried(self):
        llm = make_llm(asyncio.CancelledError())
        client = CompletionClient(llm, max_retries=2, retry_backoff=0)

        with pytest.raises(asyncio.CancelledError):
            await client.generate("p", "s")
        assert llm.ainvoke.await_count == 1

    def test_model_name(self):
        assert CompletionClient(make_llm()).model_name == "test-model"
