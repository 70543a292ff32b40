"""Hotel suggestions for a budget level through Tavily search."""

import logging
from typing import Any

from .tavily import TavilyClient

logger = logging.getLogger(__name__)

# search keywords and nightly price range per budget level
BUDGET_CONFIG: dict[str, dict[str, Any]] = {
    "budget": {"keywords": "budget hotels and hostels", "min_price": 100, "max_price": 300},
    "moderate": {"keywords": "business and boutique hotels", "min_price": 300, "max_price": 800},
    "luxury": {"keywords": "luxury five-star hotels", "min_price": 800, "max_price": 5000},
}


def estimate_price(budget_level: str) -> int:
    """Midpoint of the budget level's nightly price range."""
    config = BUDGET_CONFIG.get(budget_level, BUDGET_CONFIG["moderate"])
    return round((config["min_price"] + config["max_price"]) / 2)


class HotelClient(TavilyClient):
    async def search_hotels(self, city: str, budget_level: str, limit: int = 5) -> list[dict[str, Any]]:
        """Hotels in ``city`` as ``{name, description, url, pricePerNight}`` dicts.

        Search results carry no prices, so every hotel gets the estimated
        nightly price of ``budget_level``. Returns an empty list without a
        Tavily key; HTTP failures raise ``httpx.HTTPError``.
        """
        api_key = self.api_key
        if not api_key:
            logger.warning("No Tavily API key configured, skipping hotel search")
            return []

        config = BUDGET_CONFIG.get(budget_level, BUDGET_CONFIG["moderate"])
        logger.info(f"Searching {budget_level} hotels in {city}")
        data = await self._search(
            {
                "api_key": api_key,
                "query": f"Recommended {config['keywords']} in {city}",
                "search_depth": "basic",
                "max_results": limit,
            }
        )
        price = estimate_price(budget_level)
        return [
            {
                "name": r.get("title") or "Untitled",
                "description": (r.get("content") or "")[:300],
                "url": r.get("url") or "",
                "pricePerNight": price,
            }
            for r in (data.get("results") or [])[:limit]
        ]
