"""Attraction recommendations through Tavily search answers."""

import logging
from typing import Any

import httpx

from .tavily import TavilyClient

logger = logging.getLogger(__name__)


class AttractionClient(TavilyClient):
    async def get_attraction(self, city: str = "", weather: str = "") -> str:
        """Recommend sights for ``city`` given ``weather``; errors come back as text."""
        api_key = self.api_key
        if not api_key:
            return "Error: attraction search is unavailable because no Tavily API key is configured"

        query = f"Best tourist attractions to visit in '{city}' during '{weather}' weather, with reasons"
        try:
            data = await self._search(
                {
                    "api_key": api_key,
                    "query": query,
                    "search_depth": "basic",
                    "include_answer": True,
                }
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Attraction search for {city} failed: {e}")
            return f"Error: attraction search failed - {e}"

        if data.get("answer"):
            return data["answer"]

        lines = [f"- {r.get('title', '')}: {r.get('content', '')}" for r in data.get("results") or []]
        if not lines:
            return "Sorry, no attraction recommendations were found."
        return f"Attractions worth visiting in '{city}' during '{weather}' weather:\n" + "\n".join(lines)

    async def search_attractions(self, city: str, preferences: list[str], limit: int = 15) -> list[dict[str, Any]]:
        """Attractions in ``city`` as ``{name, description, url}`` dicts.

        Returns an empty list without a Tavily key. HTTP failures raise
        ``httpx.HTTPError``.
        """
        api_key = self.api_key
        if not api_key:
            logger.warning("No Tavily API key configured, skipping attraction search")
            return []

        interests = f" for travelers interested in {', '.join(preferences)}" if preferences else ""
        data = await self._search(
            {
                "api_key": api_key,
                "query": f"Top tourist attractions in {city}{interests}",
                "search_depth": "basic",
                "max_results": limit,
            }
        )
        return [
            {
                "name": r.get("title") or "Untitled",
                "description": (r.get("content") or "")[:300],
                "url": r.get("url") or "",
            }
            for r in (data.get("results") or [])[:limit]
        ]
