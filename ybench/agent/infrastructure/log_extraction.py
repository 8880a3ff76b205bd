"""Extraction of structured messages and token usage from raw agent output.

Agent CLIs print heterogeneous output. Each extraction strategy either returns
a validated structure or None, and strategies are tried in order until one
succeeds; the last strategy in each list always succeeds.
"""

import json
import re
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from ybench.agent.domain.log import LogMessage, TokenUsage, ToolCallRecord

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
_TOOL_MARKER = re.compile(r"\[TOOL:\s*([\w.-]+)\]\s*(.*)")
_INPUT_TOKENS = re.compile(r"input\s+tokens?:\s*(\d+)", re.IGNORECASE)
_OUTPUT_TOKENS = re.compile(r"output\s+tokens?:\s*(\d+)", re.IGNORECASE)
_COST = re.compile(r"(?:total\s+)?cost:\s*\$?\s*([0-9]+(?:\.[0-9]+)?)", re.IGNORECASE)

_NO_OUTPUT = "No output captured"

type MessageStrategy = Callable[[str, datetime], list[LogMessage] | None]
type UsageStrategy = Callable[[str], TokenUsage | None]


def strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE.sub("", text)


def extract_messages(output: str, timestamp: datetime) -> list[LogMessage]:
    """Return the messages found by the first strategy that recognises output."""
    for strategy in _MESSAGE_STRATEGIES:
        messages = strategy(output, timestamp)
        if messages:
            return messages
    return [LogMessage(role="assistant", content=_NO_OUTPUT, timestamp=timestamp)]


def extract_usage(output: str) -> TokenUsage:
    """Return the token usage found by the first strategy that recognises output."""
    for strategy in _USAGE_STRATEGIES:
        usage = strategy(output)
        if usage is not None:
            return usage
    return TokenUsage()


# ---------------------------------------------------------------------------
# Message strategies
# ---------------------------------------------------------------------------


def _json_line_messages(output: str, timestamp: datetime) -> list[LogMessage] | None:
    """One JSON object per line, each carrying `role` and `content`."""
    messages: list[LogMessage] = []
    for obj in _json_objects(output):
        if "role" not in obj or "content" not in obj:
            continue
        content = obj["content"]
        if not isinstance(content, str):
            content = json.dumps(content)
        try:
            messages.append(
                LogMessage(
                    role=obj["role"],
                    content=content,
                    timestamp=obj.get("timestamp") or timestamp,
                    tool_calls=obj.get("tool_calls") or [],
                )
            )
        except ValidationError:
            continue
    return messages or None


def _tool_marker_messages(output: str, timestamp: datetime) -> list[LogMessage] | None:
    """Plain text interleaved with `[TOOL: name] arguments` marker lines."""
    tool_calls: list[ToolCallRecord] = []
    text_lines: list[str] = []
    for line in output.splitlines():
        match = _TOOL_MARKER.match(line.strip())
        if match:
            tool_calls.append(
                ToolCallRecord(
                    id=f"call_{len(tool_calls)}",
                    name=match.group(1),
                    arguments={"input": match.group(2)},
                )
            )
        else:
            text_lines.append(line)
    if not tool_calls:
        return None
    content = "\n".join(text_lines).strip() or _NO_OUTPUT
    return [
        LogMessage(
            role="assistant",
            content=content,
            timestamp=timestamp,
            tool_calls=tool_calls,
        )
    ]


def _plain_text_message(output: str, timestamp: datetime) -> list[LogMessage] | None:
    content = output.strip() or _NO_OUTPUT
    return [LogMessage(role="assistant", content=content, timestamp=timestamp)]


_MESSAGE_STRATEGIES: list[MessageStrategy] = [
    _json_line_messages,
    _tool_marker_messages,
    _plain_text_message,
]


# ---------------------------------------------------------------------------
# Usage strategies
# ---------------------------------------------------------------------------


def _json_usage(output: str) -> TokenUsage | None:
    """Last JSON line with a `usage` object (OpenAI or Anthropic field names)."""
    found: TokenUsage | None = None
    for obj in _json_objects(output):
        usage = obj.get("usage")
        if not isinstance(usage, dict):
            continue
        prompt = _first_int(usage, "prompt_tokens", "input_tokens")
        completion = _first_int(usage, "completion_tokens", "output_tokens")
        cost = obj.get("total_cost_usd", usage.get("estimated_cost_usd"))
        found = TokenUsage(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=_first_int(usage, "total_tokens") or prompt + completion,
            estimated_cost_usd=float(cost) if isinstance(cost, int | float) else None,
        )
    return found


def _text_usage(output: str) -> TokenUsage | None:
    """`Input tokens: N` / `Output tokens: N` summary lines."""
    prompt_match = _INPUT_TOKENS.search(output)
    completion_match = _OUTPUT_TOKENS.search(output)
    if prompt_match is None and completion_match is None:
        return None
    prompt = int(prompt_match.group(1)) if prompt_match else 0
    completion = int(completion_match.group(1)) if completion_match else 0
    cost_match = _COST.search(output)
    return TokenUsage(
        prompt_tokens=prompt,
        completion_tokens=completion,
        total_tokens=prompt + completion,
        estimated_cost_usd=float(cost_match.group(1)) if cost_match else None,
    )


_USAGE_STRATEGIES: list[UsageStrategy] = [_json_usage, _text_usage]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _json_objects(output: str) -> list[dict[str, Any]]:
    objects: list[dict[str, Any]] = []
    for line in output.splitlines():
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict):
            objects.append(obj)
    return objects


def _first_int(data: dict[str, Any], *keys: str) -> int:
    for key in keys:
        value = data.get(key)
        if isinstance(value, int):
            return value
    return 0
