"""Completion client: one system prompt plus one user prompt in, text out."""

import asyncio
import logging
from typing import TYPE_CHECKING

from browser_use.llm.messages import SystemMessage, UserMessage

from .exceptions import CompletionError

if TYPE_CHECKING:
    from browser_use.llm.base import BaseChatModel

    from .config import LLMSettings

logger = logging.getLogger(__name__)


class CompletionClient:
    """Single request/response wrapper around a browser-use chat model.

    Each call is bounded by ``timeout`` and retried up to ``max_retries``
    times with exponential backoff. Cancellation is never retried.
    """

    def __init__(
        self,
        llm: "BaseChatModel",
        timeout: float = 60.0,
        max_retries: int = 2,
        retry_backoff: float = 1.0,
    ):
        self.llm = llm
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.retry_backoff = retry_backoff

    @classmethod
    def from_settings(cls, llm: "BaseChatModel", llm_settings: "LLMSettings") -> "CompletionClient":
        return cls(
            llm,
            timeout=llm_settings.timeout,
            max_retries=llm_settings.max_retries,
            retry_backoff=llm_settings.retry_backoff,
        )

    @property
    def model_name(self) -> str:
        return str(getattr(self.llm, "model", "unknown"))

    async def generate(self, prompt: str, system_prompt: str) -> str:
        """Return the model's text for ``prompt`` under ``system_prompt``.

        Raises:
            CompletionError: when every attempt failed or timed out
        """
        messages = [SystemMessage(content=system_prompt), UserMessage(content=prompt)]
        last_error: Exception | None = None

        for attempt in range(self.max_retries + 1):
            if attempt:
                delay = self.retry_backoff * (2 ** (attempt - 1))
                logger.warning(f"Retrying completion in {delay:.1f}s (attempt {attempt + 1}/{self.max_retries + 1})")
                await asyncio.sleep(delay)
            try:
                response = await asyncio.wait_for(self.llm.ainvoke(messages), timeout=self.timeout)
                return response.completion or ""
            except asyncio.TimeoutError as e:
                last_error = e
                logger.warning(f"Completion timed out after {self.timeout}s")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_error = e
                logger.warning(f"Completion failed: {e}")

        reason = str(last_error) or type(last_error).__name__
        raise CompletionError(f"Language model call failed: {reason}") from last_error
