"""Tool registry: named async tools that take flat string arguments and return text."""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ToolFunc = Callable[..., Awaitable[str]]


@dataclass(frozen=True)
class Tool:
    name: str
    signature: str
    description: str
    func: ToolFunc

    def describe(self) -> str:
        return f"- `{self.name}({self.signature})`: {self.description}"


class ToolRegistry:
    """Name -> tool lookup used by the ReAct engine.

    ``call`` never raises for tool failures: errors come back as observation
    text so the reasoning loop can continue.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, name: str, func: ToolFunc, signature: str, description: str) -> None:
        if name in self._tools:
            raise ValueError(f"Tool '{name}' is already registered")
        self._tools[name] = Tool(name=name, signature=signature, description=description, func=func)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def describe(self) -> str:
        return "\n".join(tool.describe() for tool in self._tools.values())

    async def call(self, name: str, args: dict[str, str]) -> str:
        tool = self._tools.get(name)
        if tool is None:
            return f"Error: undefined tool '{name}'"

        # unknown keyword arguments are dropped
        accepted = inspect.signature(tool.func).parameters
        kwargs = {k: v for k, v in args.items() if k in accepted}
        logger.info(f"Calling tool {name} with {kwargs}")
        try:
            return await tool.func(**kwargs)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Tool {name} failed: {e}")
            return f"Error: tool '{name}' failed - {e}"
