"""Action parsers: turn one model response into a thought plus an action."""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

PARSE_ERROR_OBSERVATION = "Parse error: could not parse the tool name or arguments."

_TRUNCATE = re.compile(r"(Thought:.*?Action:.*?)(?=\n\s*(?:Thought:|Action:|Observation:)|\s*$)", re.DOTALL)
_THOUGHT = re.compile(r"Thought:\s*([\s\S]*?)(?=Action:|$)")
_ACTION = re.compile(r"Action:\s*(.*)", re.DOTALL)
_FINISH = re.compile(r'finish\(answer="(.*)"\)', re.DOTALL)
_FINISH_LOOSE = re.compile(r"finish\((.*)\)", re.DOTALL)
_TOOL_NAME = re.compile(r"(\w+)\(")
_TOOL_ARGS = re.compile(r"\((.*)\)", re.DOTALL)
_KWARG = re.compile(r'(\w+)="([^"]*)"')
_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_OBJECT = re.compile(r"\{[\s\S]*\}")


class ActionKind(str, Enum):
    ANSWER = "answer"  # no action at all; the text is the answer
    FINISH = "finish"
    TOOL = "tool"
    INVALID = "invalid"


@dataclass
class ParsedAction:
    kind: ActionKind
    text: str
    thought: str = ""
    action: str = ""
    answer: str | None = None
    tool: str | None = None
    args: dict[str, str] = field(default_factory=dict)


class ActionParser(Protocol):
    format_instructions: str

    def parse(self, output: str) -> ParsedAction: ...


def parse_kwargs(args: str) -> dict[str, str]:
    return dict(_KWARG.findall(args))


class RegexActionParser:
    """Parses ``Thought: ...`` / ``Action: tool(key="value")`` text.

    Only the first Thought/Action pair is kept when the model runs ahead and
    writes its own Observation or a second pair.
    """

    format_instructions = """# Response format
Follow this format strictly and output exactly one Thought/Action pair per reply:
Thought: [your reasoning and plan for the next step]
Action: [the tool call, formatted as function_name(arg_name="arg_value")]

# Finishing
When you have gathered enough information to answer the user's question, use `finish(answer="...")` after `Action:` to give the final answer."""

    def parse(self, output: str) -> ParsedAction:
        truncated = _TRUNCATE.search(output)
        if truncated:
            kept = truncated.group(1).strip()
            if kept != output.strip():
                output = kept

        thought_match = _THOUGHT.search(output)
        thought = thought_match.group(1).strip() if thought_match else ""

        action_match = _ACTION.search(output)
        if not action_match:
            return ParsedAction(ActionKind.ANSWER, text=output, thought=thought, answer=output)

        action = action_match.group(1).strip()
        if action.startswith("finish"):
            finish = _FINISH.search(action) or _FINISH_LOOSE.search(action)
            answer = finish.group(1) if finish else output
            return ParsedAction(ActionKind.FINISH, text=output, thought=thought, action=action, answer=answer)

        name_match = _TOOL_NAME.search(action)
        args_match = _TOOL_ARGS.search(action)
        if not name_match or not args_match:
            return ParsedAction(ActionKind.INVALID, text=output, thought=thought, action=action)

        return ParsedAction(
            ActionKind.TOOL,
            text=output,
            thought=thought,
            action=action,
            tool=name_match.group(1),
            args=parse_kwargs(args_match.group(1)),
        )


def _load_object(text: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_json_object(text: str) -> dict[str, Any] | None:
    parsed = _load_object(text.strip())
    if parsed is not None:
        return parsed
    block = _CODE_BLOCK.search(text)
    if block:
        parsed = _load_object(block.group(1).strip())
        if parsed is not None:
            return parsed
    obj = _OBJECT.search(text)
    return _load_object(obj.group(0)) if obj else None


class JsonActionParser:
    """Parses structured replies.

    Tool call: ``{"thought": "...", "action": {"tool": "get_weather", "args": {"city": "Paris"}}}``
    Finish: ``{"thought": "...", "action": "finish", "answer": "..."}``
    """

    format_instructions = """# Response format
Reply with exactly one JSON object and nothing else.
To call a tool:
{"thought": "your reasoning", "action": {"tool": "function_name", "args": {"arg_name": "arg_value"}}}

# Finishing
When you have gathered enough information to answer the user's question, reply with:
{"thought": "your reasoning", "action": "finish", "answer": "the final answer"}"""

    def parse(self, output: str) -> ParsedAction:
        data = extract_json_object(output)
        if data is None:
            return ParsedAction(ActionKind.ANSWER, text=output, answer=output)

        text = output.strip()
        thought = str(data.get("thought") or "").strip()
        action = data.get("action")

        if action is None or action == "finish":
            answer = data.get("answer")
            answer = str(answer) if answer is not None else output
            kind = ActionKind.FINISH if action == "finish" else ActionKind.ANSWER
            return ParsedAction(kind, text=text, thought=thought, action="finish" if action else "", answer=answer)

        if not isinstance(action, dict) or not isinstance(action.get("tool"), str) or not action["tool"]:
            return ParsedAction(ActionKind.INVALID, text=text, thought=thought, action=json.dumps(action, ensure_ascii=False))

        raw_args = action.get("args") or {}
        if not isinstance(raw_args, dict):
            return ParsedAction(ActionKind.INVALID, text=text, thought=thought, action=json.dumps(action, ensure_ascii=False))

        args = {str(k): str(v) for k, v in raw_args.items() if v is not None}
        rendered = ", ".join(f'{k}="{v}"' for k, v in args.items())
        return ParsedAction(
            ActionKind.TOOL,
            text=text,
            thought=thought,
            action=f"{action['tool']}({rendered})",
            tool=action["tool"],
            args=args,
        )


def get_parser(mode: str) -> ActionParser:
    if mode == "json":
        return JsonActionParser()
    return RegexActionParser()
