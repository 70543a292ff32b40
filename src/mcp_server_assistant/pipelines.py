"""Builders that assemble pipelines from settings; each call returns fresh, unshared components."""

from typing import TYPE_CHECKING

import httpx

from .config import SEARCH_BACKENDS
from .llm import CompletionClient
from .news import DigestMachine, DigestWriter, GoogleNewsClient
from .providers import get_llm_from_settings
from .react import ReActEngine, get_parser
from .research import HttpSearchAdapter, ReportWriter, ResearchMachine, TaskPlanner, TaskRunner, TaskSummarizer
from .tools import AttractionClient, HotelClient, WeatherClient, build_travel_tools
from .travel import TravelPlanner

if TYPE_CHECKING:
    from .config import AppSettings


def build_completion_client(settings: "AppSettings") -> CompletionClient:
    """Raises ``LLMProviderError`` when the provider cannot be configured."""
    return CompletionClient.from_settings(get_llm_from_settings(settings.llm), settings.llm)


def resolve_backend(settings: "AppSettings", requested: str | None) -> str:
    """Requested backend when it is a known one, else the configured default."""
    if requested in SEARCH_BACKENDS:
        return requested
    return settings.search.default_backend


def build_research_machine(
    settings: "AppSettings",
    client: CompletionClient | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ResearchMachine:
    client = client or build_completion_client(settings)
    runner = TaskRunner(HttpSearchAdapter(settings.search, http_client), TaskSummarizer(client))
    return ResearchMachine(
        TaskPlanner(client),
        runner,
        ReportWriter(client),
        max_concurrency=settings.research.max_concurrency,
    )


def build_digest_machine(
    settings: "AppSettings",
    client: CompletionClient | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> DigestMachine:
    client = client or build_completion_client(settings)
    return DigestMachine(GoogleNewsClient(settings.news, http_client), DigestWriter(client))


def build_travel_agent(
    settings: "AppSettings",
    client: CompletionClient | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ReActEngine:
    client = client or build_completion_client(settings)
    return ReActEngine(
        client,
        build_travel_tools(settings, http_client),
        parser=get_parser(settings.agent.parser),
        max_iterations=settings.agent.max_iterations,
    )


def build_travel_planner(
    settings: "AppSettings",
    client: CompletionClient | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> TravelPlanner:
    client = client or build_completion_client(settings)
    timeout = settings.travel.timeout
    return TravelPlanner(
        client,
        WeatherClient(timeout=timeout, client=http_client),
        AttractionClient(settings.search, timeout=timeout, client=http_client),
        HotelClient(settings.search, timeout=timeout, client=http_client),
        attraction_limit=settings.travel.attraction_limit,
        hotel_limit=settings.travel.hotel_limit,
    )
