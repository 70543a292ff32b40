"""Pytest configuration and fixtures for mcp-server-assistant tests."""

from collections.abc import Callable, Iterable

import pytest


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "e2e: End-to-end tests requiring real API keys")
    config.addinivalue_line("markers", "slow: Tests that take longer to run")


@pytest.fixture
def anyio_backend():
    return "asyncio"


class ScriptedClient:
    """Stand-in for CompletionClient.

    ``script`` is either a list of replies consumed in order or a callable
    ``(prompt, system_prompt) -> reply``. A reply that is an exception is raised.
    """

    model_name = "scripted-model"

    def __init__(self, script: Iterable | Callable[[str, str], object]):
        self._responder = script if callable(script) else None
        self._replies = None if callable(script) else list(script)
        self.calls: list[tuple[str, str]] = []

    async def generate(self, prompt: str, system_prompt: str) -> str:
        self.calls.append((prompt, system_prompt))
        if self._responder is not None:
            reply = self._responder(prompt, system_prompt)
        else:
            if not self._replies:
                raise AssertionError("ScriptedClient ran out of replies")
            reply = self._replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture
def scripted_client() -> type[ScriptedClient]:
    return ScriptedClient
