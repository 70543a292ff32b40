"""LLM provider factory using browser-use native chat models."""

from typing import TYPE_CHECKING

from browser_use import ChatAnthropic, ChatGoogle, ChatGroq, ChatOllama, ChatOpenAI

# These are available via direct import but not in __all__
from browser_use.llm.deepseek.chat import ChatDeepSeek
from browser_use.llm.openrouter.chat import ChatOpenRouter

from .config import NO_KEY_PROVIDERS, STANDARD_ENV_VAR_NAMES, LLMSettings
from .exceptions import LLMProviderError

if TYPE_CHECKING:
    from browser_use.llm.base import BaseChatModel


def get_llm(
    provider: str,
    model: str,
    api_key: str | None = None,
    base_url: str | None = None,
) -> "BaseChatModel":
    """Create a chat model for the completion client.

    Supported providers:
    - openai: OpenAI and any OpenAI-compatible endpoint (set base_url)
    - anthropic: Claude models
    - google: Gemini models
    - deepseek: DeepSeek models
    - groq: Groq-hosted models
    - openrouter: OpenRouter API
    - ollama: Local Ollama models (no API key required)

    Raises:
        LLMProviderError: If provider is unsupported or API key is missing
    """
    if provider not in NO_KEY_PROVIDERS and not api_key:
        standard_var = STANDARD_ENV_VAR_NAMES.get(provider, "API key")
        raise LLMProviderError(f"API key required for provider '{provider}'. Set {standard_var} or ASSISTANT_LLM_API_KEY.")

    try:
        match provider:
            case "openai":
                return ChatOpenAI(model=model, api_key=api_key, base_url=base_url)

            case "anthropic":
                return ChatAnthropic(model=model, api_key=api_key)

            case "google":
                return ChatGoogle(model=model, api_key=api_key)

            case "deepseek":
                return ChatDeepSeek(model=model, api_key=api_key)

            case "groq":
                return ChatGroq(model=model, api_key=api_key)

            case "openrouter":
                return ChatOpenRouter(model=model, api_key=api_key)

            case "ollama":
                return ChatOllama(model=model, host=base_url)

            case _:
                raise LLMProviderError(f"Unsupported provider: {provider}")

    except LLMProviderError:
        raise
    except Exception as e:
        raise LLMProviderError(f"Failed to initialize {provider} LLM: {e}") from e


def get_llm_from_settings(llm_settings: LLMSettings) -> "BaseChatModel":
    """Create the configured chat model."""
    return get_llm(
        provider=llm_settings.provider,
        model=llm_settings.model_name,
        api_key=llm_settings.get_api_key_for_provider(),
        base_url=llm_settings.base_url,
    )
