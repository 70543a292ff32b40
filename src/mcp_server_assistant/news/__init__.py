"""News digest: fetch Google News headlines for a topic and write a daily digest."""

from .feeds import GoogleNewsClient, NewsArticle
from .machine import DigestMachine
from .writer import DigestWriter

__all__ = [
    "DigestMachine",
    "DigestWriter",
    "GoogleNewsClient",
    "NewsArticle",
]
