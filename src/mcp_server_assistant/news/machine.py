"""News digest state machine: fetch headlines, write the digest, streaming events."""

import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from ..events import PipelineEvent
from ..exceptions import NewsFetchError
from ..streaming import StreamingMachine
from .feeds import mock_news

if TYPE_CHECKING:
    from .feeds import GoogleNewsClient
    from .writer import DigestWriter

logger = logging.getLogger(__name__)

MOCK_NOTICE = "Note: the following is mock data because the Google News service could not be reached."


class DigestMachine(StreamingMachine):
    """Digest workflow emitting ``start, progress, digest, done|error``.

    A failed news fetch falls back to mock headlines flagged as mock data.
    """

    pipeline = "news"

    def __init__(self, news: "GoogleNewsClient", writer: "DigestWriter", run_id: str | None = None):
        super().__init__(run_id)
        self.news = news
        self.writer = writer
        self.digest: str | None = None
        self.used_mock_data = False

    def run(self, topic: str) -> AsyncIterator[PipelineEvent]:
        return self._stream(lambda: self._produce(topic))

    async def _produce(self, topic: str) -> None:
        await self._emit("start", {"topic": topic})
        try:
            await self._execute(topic)
        except Exception as e:
            message = str(e) or "Digest generation failed"
            logger.error(f"Digest for '{topic}' failed: {message}")
            await self._emit("error", {"message": message})

    async def _execute(self, topic: str) -> None:
        # Phase 1: Fetching
        await self._progress("fetching", 5, "Connecting to Google News...")
        await self._progress("fetching", 15, f"Fetching news for '{topic}'...")
        self._checkpoint()
        try:
            news_markdown = await self.news.for_user_topic(topic)
            await self._progress("fetching", 50, "News fetched")
        except NewsFetchError as e:
            logger.warning(f"News fetch failed, using mock data: {e}")
            self.used_mock_data = True
            news_markdown = f"{MOCK_NOTICE}\n\n{mock_news(topic)}"
            await self._progress("fetching", 50, "News service unavailable, using mock data")

        # Phase 2: Generating
        await self._progress("generating", 60, "Writing digest...")
        self._checkpoint()
        self.digest = await self.writer.write(topic, news_markdown)
        await self._progress("generating", 95, "Digest complete")
        await self._emit("digest", self.digest)
        await self._emit("done", {"topic": topic})
