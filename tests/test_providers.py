"""Tests for LLM provider factory."""

from unittest.mock import MagicMock, patch

import pytest

from mcp_server_assistant.config import LLMSettings
from mcp_server_assistant.exceptions import LLMProviderError
from mcp_server_assistant.providers import get_llm, get_llm_from_settings


class TestGetLLM:
    """Test the get_llm factory function."""

    def test_openai_provider(self):
        """OpenAI provider should create ChatOpenAI instance."""
        with patch("mcp_server_assistant.providers.ChatOpenAI") as mock:
            mock.return_value = MagicMock()
            get_llm("openai", "gpt-4o", api_key="test-key")
            mock.assert_called_once_with(model="gpt-4o", api_key="test-key", base_url=None)

    def test_openai_compatible_base_url(self):
        """OpenAI provider should pass a custom base_url through."""
        with patch("mcp_server_assistant.providers.ChatOpenAI") as mock:
            mock.return_value = MagicMock()
            get_llm("openai", "deepseek-ai/DeepSeek-V3.2", api_key="test-key", base_url="https://api-inference.modelscope.cn/v1")
            mock.assert_called_once_with(
                model="deepseek-ai/DeepSeek-V3.2",
                api_key="test-key",
                base_url="https://api-inference.modelscope.cn/v1",
            )

    def test_anthropic_provider(self):
        with patch("mcp_server_assistant.providers.ChatAnthropic") as mock:
            mock.return_value = MagicMock()
            get_llm("anthropic", "claude-sonnet", api_key="test-key")
            mock.assert_called_once_with(model="claude-sonnet", api_key="test-key")

    def test_deepseek_provider(self):
        with patch("mcp_server_assistant.providers.ChatDeepSeek") as mock:
            mock.return_value = MagicMock()
            get_llm("deepseek", "deepseek-chat", api_key="test-key")
            mock.assert_called_once_with(model="deepseek-chat", api_key="test-key")

    def test_ollama_without_key(self):
        """Ollama should not require an API key."""
        with patch("mcp_server_assistant.providers.ChatOllama") as mock:
            mock.return_value = MagicMock()
            get_llm("ollama", "llama3", base_url="http://localhost:11434")
            mock.assert_called_once_with(model="llama3", host="http://localhost:11434")

    def test_missing_api_key_raises(self):
        with pytest.raises(LLMProviderError, match="API key required"):
            get_llm("openai", "gpt-4o")

    def test_unsupported_provider_raises(self):
        with pytest.raises(LLMProviderError, match="Unsupported provider"):
            get_llm("nonexistent", "model", api_key="test-key")

    def test_init_failure_is_wrapped(self):
        """Errors from the chat model constructor become LLMProviderError."""
        with patch("mcp_server_assistant.providers.ChatOpenAI", side_effect=RuntimeError("boom")):
            with pytest.raises(LLMProviderError, match="Failed to initialize openai LLM: boom"):
                get_llm("openai", "gpt-4o", api_key="test-key")


class TestGetLLMFromSettings:
    def test_uses_resolved_key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "env-key")
        monkeypatch.delenv("ASSISTANT_LLM_API_KEY", raising=False)
        monkeypatch.delenv("LLM_API_KEY", raising=False)

        with patch("mcp_server_assistant.providers.ChatOpenAI") as mock:
            mock.return_value = MagicMock()
            get_llm_from_settings(LLMSettings(model_name="m", base_url="http://example"))
            mock.assert_called_once_with(model="m", api_key="env-key", base_url="http://example")
