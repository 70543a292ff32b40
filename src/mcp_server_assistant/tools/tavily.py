"""Shared Tavily request plumbing for the attraction and hotel lookups."""

from typing import TYPE_CHECKING, Any

import httpx

from ..research.search import TAVILY_URL

if TYPE_CHECKING:
    from ..config import SearchSettings


class TavilyClient:
    def __init__(self, settings: "SearchSettings", timeout: float = 15.0, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self.timeout = timeout
        self._client = client

    @property
    def api_key(self) -> str | None:
        return self.settings.get_key("tavily")

    async def _search(self, payload: dict[str, Any]) -> dict[str, Any]:
        if self._client is not None:
            response = await self._client.post(TAVILY_URL, json=payload, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(TAVILY_URL, json=payload)
        response.raise_for_status()
        return response.json()
