"""Google News RSS client: topic sections, keyword search and Markdown rendering."""

import html
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from ..exceptions import NewsFetchError

if TYPE_CHECKING:
    from ..config import NewsSettings

logger = logging.getLogger(__name__)

GOOGLE_NEWS_BASE = "https://news.google.com/rss"

TOPIC_NAMES = {
    "WORLD": "World",
    "NATION": "Nation",
    "BUSINESS": "Business",
    "TECHNOLOGY": "Technology",
    "ENTERTAINMENT": "Entertainment",
    "SPORTS": "Sports",
    "SCIENCE": "Science",
    "HEALTH": "Health",
}

# keyword -> Google News topic section, checked in order
TOPIC_KEYWORDS: dict[str, str] = {
    "technology": "TECHNOLOGY",
    "tech": "TECHNOLOGY",
    "ai": "TECHNOLOGY",
    "artificial intelligence": "TECHNOLOGY",
    "internet": "TECHNOLOGY",
    "software": "TECHNOLOGY",
    "hardware": "TECHNOLOGY",
    "programming": "TECHNOLOGY",
    "gadgets": "TECHNOLOGY",
    "科技": "TECHNOLOGY",
    "人工智能": "TECHNOLOGY",
    "business": "BUSINESS",
    "finance": "BUSINESS",
    "economy": "BUSINESS",
    "stocks": "BUSINESS",
    "investing": "BUSINESS",
    "startups": "BUSINESS",
    "经济": "BUSINESS",
    "entertainment": "ENTERTAINMENT",
    "movies": "ENTERTAINMENT",
    "music": "ENTERTAINMENT",
    "celebrity": "ENTERTAINMENT",
    "gaming": "ENTERTAINMENT",
    "娱乐": "ENTERTAINMENT",
    "sports": "SPORTS",
    "football": "SPORTS",
    "basketball": "SPORTS",
    "nba": "SPORTS",
    "体育": "SPORTS",
    "science": "SCIENCE",
    "research": "SCIENCE",
    "科学": "SCIENCE",
    "health": "HEALTH",
    "medicine": "HEALTH",
    "healthcare": "HEALTH",
    "健康": "HEALTH",
    "world": "WORLD",
    "global": "WORLD",
    "international": "WORLD",
    "国际": "WORLD",
    "nation": "NATION",
    "national": "NATION",
    "domestic": "NATION",
}

_TAGS = re.compile(r"<[^>]+>")


@dataclass
class NewsArticle:
    title: str
    link: str
    pub_date: str = ""
    source: str = ""
    description: str = ""


def match_topic(user_topic: str) -> str | None:
    """Map a free-form topic to a Google News section, or None for keyword search."""
    lowered = user_topic.lower().strip()
    words = set(re.findall(r"[a-z]+", lowered))
    for keyword, section in TOPIC_KEYWORDS.items():
        if keyword.isascii():
            if (" " in keyword and keyword in lowered) or keyword in words:
                return section
        elif keyword in lowered:
            return section
    return None


def _clean(text: str) -> str:
    return html.unescape(_TAGS.sub("", text)).replace("\xa0", " ").strip()


def parse_rss(xml_text: str) -> list[NewsArticle]:
    """Extract articles from an RSS 2.0 document; items without title or link are skipped."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise NewsFetchError(f"Invalid RSS document: {e}") from e

    articles = []
    for item in root.iter("item"):
        title = (item.findtext("title") or "").strip()
        link = (item.findtext("link") or "").strip()
        if not title or not link:
            continue
        source = (item.findtext("source") or "").strip()
        if not source:
            parts = title.split(" - ")
            source = parts[-1] if len(parts) > 1 else "Google News"
        articles.append(
            NewsArticle(
                title=html.unescape(title),
                link=link,
                pub_date=(item.findtext("pubDate") or "").strip(),
                source=source,
                description=_clean(item.findtext("description") or ""),
            )
        )
    return articles


def _format_date(pub_date: str) -> str:
    try:
        return parsedate_to_datetime(pub_date).date().isoformat()
    except (TypeError, ValueError):
        return ""


def format_articles(articles: list[NewsArticle], heading: str) -> str:
    if not articles:
        return f"## {heading}\n\nNo related news found.\n"

    lines = [f"## {heading}\n"]
    for index, article in enumerate(articles, start=1):
        source = f" - {article.source}" if article.source else ""
        date = _format_date(article.pub_date) if article.pub_date else ""
        date = f" ({date})" if date else ""
        lines.append(f"{index}. [{article.title}]({article.link}){source}{date}")
        if article.description:
            lines.append(f"   > {article.description[:150]}...")
        lines.append("")
    return "\n".join(lines)


def mock_news(topic: str) -> str:
    """Placeholder headlines, flagged as mock data, for when the feed is unreachable."""
    return f"""# News Headlines

## Top Stories

1. [Latest developments in {topic}](https://news.google.com) - Trending
2. [Experts analyze {topic} trends](https://news.google.com) - Hot
3. [{topic} news makes headlines](https://news.google.com) - Popular

## Technology

1. [Breaking: {topic} innovation announced](https://news.google.com)
2. [Industry leaders discuss the future of {topic}](https://news.google.com)
3. [New research on {topic} published](https://news.google.com)

## Business

1. [{topic} market analysis report](https://news.google.com)
2. [Investment opportunities in {topic}](https://news.google.com)
3. [{topic} sector growth predictions](https://news.google.com)

---
*Mock data - Google News service unavailable*"""


class GoogleNewsClient:
    """Fetches headlines from Google News RSS and renders them as Markdown."""

    def __init__(self, settings: "NewsSettings", client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = client

    @property
    def _locale_query(self) -> str:
        language, country = self.settings.language, self.settings.country
        return f"hl={language}&gl={country}&ceid={country}:{language.split('-')[0]}"

    async def _fetch(self, url: str) -> list[NewsArticle]:
        logger.info(f"Fetching RSS: {url}")
        headers = {
            "User-Agent": "Mozilla/5.0 (compatible; NewsBot/1.0)",
            "Accept": "application/rss+xml, application/xml, text/xml",
        }
        try:
            if self._client is not None:
                response = await self._client.get(url, headers=headers, timeout=self.settings.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.settings.timeout) as client:
                    response = await client.get(url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NewsFetchError(f"Failed to fetch news feed: {e}") from e

        return parse_rss(response.text)[: self.settings.max_articles]

    async def by_topic(self, section: str) -> str:
        url = f"{GOOGLE_NEWS_BASE}/headlines/section/topic/{section}?{self._locale_query}"
        articles = await self._fetch(url)
        logger.info(f"Topic {section}: {len(articles)} article(s)")
        return format_articles(articles, f"{TOPIC_NAMES[section]} ({section})")

    async def by_keyword(self, keyword: str) -> str:
        url = f"{GOOGLE_NEWS_BASE}/search?q={quote(keyword)}&{self._locale_query}"
        articles = await self._fetch(url)
        logger.info(f"Keyword '{keyword}': {len(articles)} article(s)")
        return format_articles(articles, f"Search: {keyword}")

    async def for_user_topic(self, user_topic: str) -> str:
        """Use a topic section when the topic maps to one, otherwise keyword search.

        Raises:
            NewsFetchError: when the feed cannot be fetched or parsed
        """
        section = match_topic(user_topic)
        if section:
            logger.info(f"Topic '{user_topic}' matched section {section}")
            return await self.by_topic(section)
        return await self.by_keyword(user_topic)
