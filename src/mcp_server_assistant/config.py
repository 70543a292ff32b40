"""Configuration management using Pydantic settings with optional file persistence."""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Paths ---

APP_NAME = "mcp-server-assistant"


def get_config_dir() -> Path:
    """Get the configuration directory (e.g. ~/.config/mcp-server-assistant)."""
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", Path.home() / ".config")).expanduser()
    else:
        base = Path("~/.config").expanduser()

    path = base / APP_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_default_results_dir() -> Path:
    """Get the default directory for saving reports and digests."""
    base = Path("~/Documents").expanduser()
    if not base.exists():
        base = Path.home()

    return base / "assistant-results"


CONFIG_FILE = get_config_dir() / "config.json"


def load_config_file() -> dict[str, Any]:
    """Load settings from the JSON config file if it exists."""
    if not CONFIG_FILE.exists():
        return {}

    try:
        text = CONFIG_FILE.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        return json.loads(text)
    except (OSError, json.JSONDecodeError):
        return {}


def save_config_file(config_data: dict[str, Any]) -> None:
    """Save settings to the JSON config file."""
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(config_data, indent=2), encoding="utf-8")


# Standard environment variable names for API keys
# For providers with multiple common env var names, use a list (first match wins)
STANDARD_ENV_VAR_NAMES: dict[str, str | list[str]] = {
    "openai": ["LLM_API_KEY", "OPENAI_API_KEY"],
    "anthropic": "ANTHROPIC_API_KEY",
    "google": ["GEMINI_API_KEY", "GOOGLE_API_KEY"],
    "deepseek": "DEEPSEEK_API_KEY",
    "groq": "GROQ_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}

# Providers that don't require an API key
NO_KEY_PROVIDERS = frozenset({"ollama"})

ProviderType = Literal[
    "openai",
    "anthropic",
    "google",
    "deepseek",
    "groq",
    "openrouter",
    "ollama",
]

SearchBackend = Literal["tavily", "duckduckgo", "serper", "bing"]
SEARCH_BACKENDS: tuple[str, ...] = ("tavily", "duckduckgo", "serper", "bing")

ParserMode = Literal["regex", "json"]


class LLMSettings(BaseSettings):
    """Completion endpoint configuration."""

    model_config = SettingsConfigDict(env_prefix="ASSISTANT_LLM_")

    provider: ProviderType = Field(default="openai")
    model_name: str = Field(default="deepseek-ai/DeepSeek-V3.2")
    api_key: Optional[SecretStr] = Field(default=None, description="Generic API key override (highest priority)")
    base_url: Optional[str] = Field(
        default="https://api-inference.modelscope.cn/v1",
        description="Base URL for OpenAI-compatible APIs",
    )
    timeout: float = Field(default=60.0, description="Per-call timeout in seconds")
    max_retries: int = Field(default=2, description="Retries for a failed completion call")
    retry_backoff: float = Field(default=1.0, description="Initial backoff between retries in seconds")

    def get_api_key_for_provider(self) -> Optional[str]:
        """Resolve API key with priority: generic > standard > prefixed.

        Priority order:
        1. ASSISTANT_LLM_API_KEY (generic override, applies to any provider)
        2. <PROVIDER>_API_KEY (standard name, e.g., OPENAI_API_KEY, GEMINI_API_KEY)
        3. ASSISTANT_LLM_<PROVIDER>_API_KEY

        Returns:
            The resolved API key or None if not found.
        """
        if self.api_key:
            return self.api_key.get_secret_value()

        standard_vars = STANDARD_ENV_VAR_NAMES.get(self.provider)
        if standard_vars:
            if isinstance(standard_vars, str):
                standard_vars = [standard_vars]
            for var_name in standard_vars:
                key = os.environ.get(var_name)
                if key:
                    return key

        return os.environ.get(f"ASSISTANT_LLM_{self.provider.upper()}_API_KEY")

    def requires_api_key(self) -> bool:
        """Check if the current provider requires an API key."""
        return self.provider not in NO_KEY_PROVIDERS


class AgentSettings(BaseSettings):
    """ReAct agent configuration."""

    model_config = SettingsConfigDict(env_prefix="ASSISTANT_AGENT_")

    max_iterations: int = Field(default=5, description="Maximum model calls per conversational turn")
    parser: ParserMode = Field(default="regex", description="Action parser: regex (Thought/Action text) or json")
    tool_timeout: float = Field(default=15.0, description="Timeout for weather/attraction lookups in seconds")


class SearchSettings(BaseSettings):
    """Web search backends."""

    model_config = SettingsConfigDict(env_prefix="ASSISTANT_SEARCH_")

    default_backend: SearchBackend = Field(default="tavily")
    tavily_api_key: Optional[SecretStr] = Field(default=None)
    serper_api_key: Optional[SecretStr] = Field(default=None)
    bing_api_key: Optional[SecretStr] = Field(default=None)
    max_results: int = Field(default=5)
    timeout: float = Field(default=15.0, description="Per-request timeout in seconds")
    max_retries: int = Field(default=1, description="Retries for a failed search request")
    mock_fallback: bool = Field(default=True, description="Return placeholder results when a backend has no API key")

    def get_key(self, backend: str) -> Optional[str]:
        """Resolve a backend API key from settings, then the conventional env var."""
        configured = {
            "tavily": self.tavily_api_key,
            "serper": self.serper_api_key,
            "bing": self.bing_api_key,
        }.get(backend)
        if configured:
            return configured.get_secret_value()

        env_var = {
            "tavily": "TAVILY_API_KEY",
            "serper": "SERPER_API_KEY",
            "bing": "BING_SEARCH_KEY",
        }.get(backend)
        return os.environ.get(env_var) if env_var else None


class ResearchSettings(BaseSettings):
    """Deep research pipeline configuration."""

    model_config = SettingsConfigDict(env_prefix="ASSISTANT_RESEARCH_")

    max_concurrency: int = Field(default=1, description="Sub-tasks searched and summarized at the same time")


class TravelSettings(BaseSettings):
    """Trip planner configuration."""

    model_config = SettingsConfigDict(env_prefix="ASSISTANT_TRAVEL_")

    max_days: int = Field(default=30, description="Longest trip, in days, a plan may cover")
    attraction_limit: int = Field(default=15, description="Attractions offered to the itinerary writer")
    hotel_limit: int = Field(default=5)
    timeout: float = Field(default=15.0, description="Timeout for weather, attraction and hotel lookups in seconds")


class NewsSettings(BaseSettings):
    """News digest configuration."""

    model_config = SettingsConfigDict(env_prefix="ASSISTANT_NEWS_")

    max_articles: int = Field(default=10)
    timeout: float = Field(default=15.0, description="Feed request timeout in seconds")
    language: str = Field(default="en-US")
    country: str = Field(default="US")


class ServerSettings(BaseSettings):
    """Server configuration."""

    model_config = SettingsConfigDict(env_prefix="ASSISTANT_SERVER_")

    logging_level: str = Field(default="INFO")
    host: str = Field(default="127.0.0.1", description="Host for the HTTP server")
    port: int = Field(default=8383, description="Port for the HTTP server")
    results_dir: Optional[str] = Field(default=None, description="Directory to save generated documents")


class AppSettings(BaseSettings):
    """Root application settings.

    Priority: Environment Variables > Config File > Defaults
    """

    model_config = SettingsConfigDict(env_prefix="ASSISTANT_", extra="ignore")

    llm: LLMSettings = Field(default_factory=LLMSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    research: ResearchSettings = Field(default_factory=ResearchSettings)
    news: NewsSettings = Field(default_factory=NewsSettings)
    travel: TravelSettings = Field(default_factory=TravelSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    def save(self) -> Path:
        """Save current configuration to file (excluding secrets)."""
        data = self.model_dump(mode="json", exclude_none=True)
        data.get("llm", {}).pop("api_key", None)
        for key in ("tavily_api_key", "serper_api_key", "bing_api_key"):
            data.get("search", {}).pop(key, None)
        save_config_file(data)
        return CONFIG_FILE

    def get_results_dir(self) -> Path:
        """Get the results directory, creating if needed."""
        if self.server.results_dir:
            path = Path(self.server.results_dir).expanduser()
        else:
            path = get_default_results_dir()
        path.mkdir(parents=True, exist_ok=True)
        return path


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Load settings with file config as base, env vars overlay."""
    file_data = load_config_file()
    return AppSettings(**file_data)
