"""MCP server for deep research, news digests and a ReAct travel agent."""

from .config import get_settings
from .exceptions import AssistantError, CompletionError, LLMProviderError, NewsFetchError, SearchError
from .providers import get_llm
from .server import main, serve

__all__ = [
    "main",
    "serve",
    "get_settings",
    "get_llm",
    "AssistantError",
    "CompletionError",
    "LLMProviderError",
    "NewsFetchError",
    "SearchError",
]
