"""Web search adapter with switchable backends and a uniform result shape."""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from ..exceptions import SearchError
from .models import SourceItem

if TYPE_CHECKING:
    from ..config import SearchSettings

logger = logging.getLogger(__name__)

TAVILY_URL = "https://api.tavily.com/search"
SERPER_URL = "https://google.serper.dev/search"
DUCKDUCKGO_URL = "https://api.duckduckgo.com/"
BING_URL = "https://api.bing.microsoft.com/v7.0/search"


class SearchAdapter(Protocol):
    async def search(self, query: str, backend: str) -> list[SourceItem]: ...


def mock_results(query: str) -> list[SourceItem]:
    """Placeholder results for development when a backend has no credentials."""
    return [
        SourceItem(
            title=f"Search result 1 for '{query}'",
            url="https://example.com/result-1",
            snippet=f"First search result for '{query}', with background information on the basic concepts.",
        ),
        SourceItem(
            title=f"{query} - Wikipedia",
            url="https://en.wikipedia.org/wiki/Example",
            snippet=f"{query} is an active field. This article covers its history, main characteristics and applications.",
        ),
        SourceItem(
            title=f"Understanding {query} in depth",
            url="https://example.com/deep-dive",
            snippet=f"A detailed analysis of the technical details and inner workings of {query}.",
        ),
        SourceItem(
            title=f"Latest developments in {query}",
            url="https://example.com/latest",
            snippet=f"A roundup of recent results and industry news about {query}.",
        ),
        SourceItem(
            title=f"{query} practical guide",
            url="https://example.com/guide",
            snippet=f"Step-by-step guidance and best practices for working with {query}.",
        ),
    ]


class HttpSearchAdapter:
    """Search through Tavily, Serper, DuckDuckGo or Bing over HTTP.

    Usage:
        adapter = HttpSearchAdapter(settings.search)
        sources = await adapter.search("solid state batteries", "tavily")

    Network and HTTP errors are retried ``settings.max_retries`` times and
    then raised as ``SearchError``. A backend without an API key returns
    ``mock_results`` when ``settings.mock_fallback`` is on.
    """

    def __init__(self, settings: "SearchSettings", client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = client

    async def search(self, query: str, backend: str) -> list[SourceItem]:
        if backend not in ("tavily", "serper", "duckduckgo", "bing"):
            logger.warning(f"Unsupported search backend '{backend}', using tavily")
            backend = "tavily"

        logger.info(f"Searching with {backend}: {query}")
        last_error: Exception | None = None
        for attempt in range(self.settings.max_retries + 1):
            if attempt:
                await asyncio.sleep(0.5 * attempt)
            try:
                return await self._dispatch(query, backend)
            except (httpx.HTTPError, ValueError, KeyError) as e:
                last_error = e
                logger.warning(f"Search attempt {attempt + 1} with {backend} failed: {e}")

        raise SearchError(f"Search with {backend} failed: {last_error}") from last_error

    async def _dispatch(self, query: str, backend: str) -> list[SourceItem]:
        match backend:
            case "serper":
                return await self._search_serper(query)
            case "duckduckgo":
                return await self._search_duckduckgo(query)
            case "bing":
                return await self._search_bing(query)
            case _:
                return await self._search_tavily(query)

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        if self._client is not None:
            response = await self._client.request(method, url, timeout=self.settings.timeout, **kwargs)
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient(timeout=self.settings.timeout) as client:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json()

    def _missing_key(self, backend: str, query: str) -> list[SourceItem]:
        if not self.settings.mock_fallback:
            raise SearchError(f"No API key configured for search backend '{backend}'")
        logger.warning(f"No API key for {backend}, returning placeholder results")
        return mock_results(query)

    async def _search_tavily(self, query: str) -> list[SourceItem]:
        api_key = self.settings.get_key("tavily")
        if not api_key:
            return self._missing_key("tavily", query)

        data = await self._request(
            "POST",
            TAVILY_URL,
            json={
                "api_key": api_key,
                "query": query,
                "search_depth": "basic",
                "max_results": self.settings.max_results,
            },
        )
        return [
            SourceItem(title=item.get("title", ""), url=item["url"], snippet=item.get("content", ""))
            for item in data.get("results", [])
            if item.get("url")
        ]

    async def _search_serper(self, query: str) -> list[SourceItem]:
        api_key = self.settings.get_key("serper")
        if not api_key:
            return self._missing_key("serper", query)

        data = await self._request(
            "POST",
            SERPER_URL,
            headers={"X-API-KEY": api_key},
            json={"q": query, "num": self.settings.max_results},
        )
        return [
            SourceItem(title=item.get("title", ""), url=item["link"], snippet=item.get("snippet", ""))
            for item in data.get("organic") or []
            if item.get("link")
        ]

    async def _search_duckduckgo(self, query: str) -> list[SourceItem]:
        # Instant Answer API: free, no key, sparse results
        data = await self._request(
            "GET",
            DUCKDUCKGO_URL,
            params={"q": query, "format": "json", "no_html": "1"},
        )
        results: list[SourceItem] = []
        if data.get("AbstractText") and data.get("AbstractURL"):
            results.append(SourceItem(title=query, url=data["AbstractURL"], snippet=data["AbstractText"]))

        for topic in data.get("RelatedTopics") or []:
            if len(results) >= self.settings.max_results:
                break
            text, url = topic.get("Text"), topic.get("FirstURL")
            if text and url:
                results.append(SourceItem(title=text.split(" - ")[0], url=url, snippet=text))

        if not results and self.settings.mock_fallback:
            logger.warning("DuckDuckGo returned nothing, returning placeholder results")
            return mock_results(query)
        return results

    async def _search_bing(self, query: str) -> list[SourceItem]:
        api_key = self.settings.get_key("bing")
        if not api_key:
            return self._missing_key("bing", query)

        data = await self._request(
            "GET",
            BING_URL,
            headers={"Ocp-Apim-Subscription-Key": api_key},
            params={"q": query, "count": self.settings.max_results},
        )
        return [
            SourceItem(title=item.get("name", ""), url=item["url"], snippet=item.get("snippet", ""))
            for item in (data.get("webPages") or {}).get("value", [])
            if item.get("url")
        ]
