"""Digest writer: turns raw headline Markdown into a dated daily digest."""

import logging
from datetime import date
from typing import TYPE_CHECKING

from .prompts import DIGEST_WRITER_SYSTEM_PROMPT, get_digest_prompt

if TYPE_CHECKING:
    from ..llm import CompletionClient

logger = logging.getLogger(__name__)

FOOTER = "---\n*This digest was generated automatically by the news assistant.*"


def today_string(today: date | None = None) -> str:
    return (today or date.today()).strftime("%B %d, %Y")


def empty_digest(topic: str, date_str: str) -> str:
    return f"""# Daily Digest | {date_str}

## No content available

No headlines related to "{topic}" could be retrieved.

Possible reasons:
- The news service is temporarily unreachable
- There is no recent news on this topic

Suggestions:
- Try a different topic keyword
- Try again later

{FOOTER}"""


def failed_digest(date_str: str) -> str:
    return f"""# Daily Digest | {date_str}

## Generation failed

Something went wrong while writing the digest. Please try again later.

{FOOTER}"""


class DigestWriter:
    def __init__(self, client: "CompletionClient"):
        self.client = client

    async def write(self, topic: str, news_markdown: str) -> str:
        """Write the digest; empty input short-circuits without a model call."""
        date_str = today_string()
        if not news_markdown or not news_markdown.strip():
            logger.warning(f"No news content for '{topic}', returning empty digest")
            return empty_digest(topic, date_str)

        logger.info(f"Writing digest for '{topic}'")
        digest = await self.client.generate(get_digest_prompt(topic, date_str, news_markdown), DIGEST_WRITER_SYSTEM_PROMPT)
        if not digest.strip():
            logger.warning("Model returned an empty digest")
            return failed_digest(date_str)
        return digest
