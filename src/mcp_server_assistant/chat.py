"""Chat endpoint logic: FAQ keyword matching and the travel agent."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from importlib import resources
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from .react import ReActEngine

logger = logging.getLogger(__name__)

FAQ_MODEL = "faq-matcher"
AGENT_MODEL = "travel-agent"
NO_ANSWER = "Sorry, I can't answer that right now. Try different keywords or contact support."


@dataclass
class FAQItem:
    id: str
    category_id: str
    question: str
    answer: str
    keywords: list[str] = field(default_factory=list)


@dataclass
class FAQData:
    categories: list[dict[str, str]]
    items: list[FAQItem]


def parse_faq(raw: dict[str, Any]) -> FAQData:
    items = [
        FAQItem(
            id=str(item["id"]),
            category_id=str(item.get("categoryId", "")),
            question=item["question"],
            answer=item["answer"],
            keywords=[str(k) for k in item.get("keywords") or []],
        )
        for item in raw.get("items") or []
    ]
    return FAQData(categories=raw.get("categories") or [], items=items)


def load_faq() -> FAQData:
    """Load the bundled FAQ table."""
    text = resources.files("mcp_server_assistant").joinpath("data/faq.yaml").read_text(encoding="utf-8")
    return parse_faq(yaml.safe_load(text) or {})


def match_faq(question: str, faq: FAQData) -> FAQItem | None:
    """First item whose question appears in ``question``, else first keyword hit."""
    q = question.lower()
    for item in faq.items:
        if item.question.lower() in q:
            return item
    for item in faq.items:
        if any(k.lower() in q for k in item.keywords):
            return item
    return None


class ChatService:
    """Answers chat questions; agent failures degrade to the FAQ, never to an error."""

    def __init__(self, faq: FAQData, agent_factory: Callable[[], "ReActEngine"] | None = None):
        self.faq = faq
        self.agent_factory = agent_factory

    def faq_answer(self, question: str) -> str:
        item = match_faq(question, self.faq)
        return item.answer if item else NO_ANSWER

    async def answer(self, question: str, model: str | None = None) -> dict[str, Any]:
        model = model or AGENT_MODEL
        if model == FAQ_MODEL or self.agent_factory is None:
            return {"model": FAQ_MODEL, "question": question, "answer": self.faq_answer(question)}

        try:
            result = await self.agent_factory().run(question)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Travel agent failed, answering from FAQ: {e!r}")
            return {
                "model": model,
                "question": question,
                "answer": self.faq_answer(question),
                "steps": [],
                "usedTools": False,
            }

        return {
            "model": model,
            "question": question,
            "answer": result.answer,
            "steps": [s.to_dict() for s in result.steps],
            "usedTools": result.used_tools,
        }
