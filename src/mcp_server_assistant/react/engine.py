"""ReAct loop: think, act with a tool, observe, repeat until finished or out of budget."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

from .parser import PARSE_ERROR_OBSERVATION, ActionKind, ActionParser, RegexActionParser
from .prompts import build_system_prompt

if TYPE_CHECKING:
    from ..llm import CompletionClient
    from ..tools import ToolRegistry

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = "Sorry, I was unable to complete this request."


@dataclass(frozen=True)
class ReasoningStep:
    thought: str
    action: str
    observation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"thought": self.thought, "action": self.action}
        if self.observation is not None:
            data["observation"] = self.observation
        return data


@dataclass
class ReActResult:
    answer: str
    steps: list[ReasoningStep] = field(default_factory=list)
    used_tools: bool = False
    model: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "steps": [s.to_dict() for s in self.steps],
            "model": self.model,
            "usedTools": self.used_tools,
        }


class ReActEngine:
    """Bounded reasoning-and-acting loop over a completion client and a tool registry.

    Usage:
        engine = ReActEngine(client, build_travel_tools(settings))
        result = await engine.run("What's the weather in Paris tomorrow?")

    Every iteration sends the whole transcript (``User request``, model
    replies and ``Observation`` lines) to the model. The answer is never
    empty: an exhausted budget falls back to the last observation, then the
    last thought, then ``FALLBACK_ANSWER``.
    """

    def __init__(
        self,
        client: "CompletionClient",
        tools: "ToolRegistry",
        parser: ActionParser | None = None,
        max_iterations: int = 5,
        today: Callable[[], date] = date.today,
    ):
        self.client = client
        self.tools = tools
        self.parser = parser or RegexActionParser()
        self.max_iterations = max(1, max_iterations)
        self.today = today

    def system_prompt(self) -> str:
        return build_system_prompt(self.tools.describe(), self.parser.format_instructions, self.today())

    async def run(self, user_input: str) -> ReActResult:
        """Answer ``user_input``.

        Raises:
            CompletionError: when a model call fails
        """
        transcript = [f"User request: {user_input}"]
        system_prompt = self.system_prompt()
        steps: list[ReasoningStep] = []
        answer = ""
        used_tools = False

        for iteration in range(self.max_iterations):
            output = await self.client.generate("\n".join(transcript), system_prompt)
            parsed = self.parser.parse(output)
            transcript.append(parsed.text)

            if parsed.kind == ActionKind.ANSWER:
                answer = parsed.answer or ""
                break

            if parsed.kind == ActionKind.FINISH:
                steps.append(ReasoningStep(thought=parsed.thought, action=parsed.action))
                answer = parsed.answer or ""
                logger.info(f"Agent finished after {iteration + 1} iteration(s)")
                break

            if parsed.kind == ActionKind.INVALID:
                observation = PARSE_ERROR_OBSERVATION
            elif parsed.tool in self.tools:
                observation = await self.tools.call(parsed.tool, parsed.args)
                used_tools = True
            else:
                observation = f"Error: undefined tool '{parsed.tool}'"

            steps.append(ReasoningStep(thought=parsed.thought, action=parsed.action, observation=observation))
            logger.debug(f"Step {iteration + 1}: {parsed.action} -> {observation[:200]}")
            transcript.append(f"Observation: {observation}")
        else:
            logger.warning(f"Agent reached the iteration limit ({self.max_iterations})")

        if not answer.strip():
            answer = self._fallback_answer(steps)

        return ReActResult(answer=answer, steps=steps, used_tools=used_tools, model=self.client.model_name)

    @staticmethod
    def _fallback_answer(steps: list[ReasoningStep]) -> str:
        if steps:
            last = steps[-1]
            if last.observation:
                return last.observation
            if last.thought:
                return last.thought
        return FALLBACK_ANSWER
