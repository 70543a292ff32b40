"""ReAct travel agent."""

from .engine import ReActEngine, ReActResult, ReasoningStep
from .parser import ActionParser, JsonActionParser, ParsedAction, RegexActionParser, get_parser

__all__ = [
    "ActionParser",
    "JsonActionParser",
    "ParsedAction",
    "ReActEngine",
    "ReActResult",
    "ReasoningStep",
    "RegexActionParser",
    "get_parser",
]
