"""Custom exceptions for the assistant orchestration server."""


class AssistantError(Exception):
    """Base exception for assistant errors."""

    pass


class LLMProviderError(AssistantError):
    """Raised when LLM provider configuration is invalid."""

    pass


class CompletionError(AssistantError):
    """Raised when a completion request fails after all retries."""

    pass


class SearchError(AssistantError):
    """Raised when a search backend request fails."""

    pass


class NewsFetchError(AssistantError):
    """Raised when news feeds cannot be fetched or parsed."""

    pass


class InvalidTransitionError(AssistantError):
    """Raised when a sub-task status would move backwards."""

    pass
