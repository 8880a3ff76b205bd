"""Tests for raw agent output extraction strategies."""

import json
from datetime import UTC, datetime

import pytest

from ybench.agent.infrastructure.log_extraction import (
    extract_messages,
    extract_usage,
    strip_ansi,
)

_TS = datetime(2026, 1, 1, tzinfo=UTC)


class TestStripAnsi:
    """strip_ansi() removes terminal escape sequences."""

    def test_removes_colour_codes(self) -> None:
        assert strip_ansi("\x1b[1;31mred\x1b[0m text") == "red text"

    def test_plain_text_unchanged(self) -> None:
        assert strip_ansi("nothing to strip") == "nothing to strip"


class TestExtractMessages:
    """extract_messages() tries JSON lines, tool markers, then plain text."""

    def test_json_lines_with_role_and_content(self) -> None:
        output = "\n".join(
            [
                json.dumps({"role": "assistant", "content": "Reading files"}),
                "some noise",
                json.dumps({"role": "tool", "content": "README.md"}),
            ]
        )

        messages = extract_messages(output, timestamp=_TS)

        assert [m.role for m in messages] == ["assistant", "tool"]
        assert messages[0].content == "Reading files"

    def test_json_lines_with_invalid_role_are_ignored(self) -> None:
        output = "\n".join(
            [
                json.dumps({"role": "narrator", "content": "ignored"}),
                json.dumps({"role": "assistant", "content": "kept"}),
            ]
        )

        messages = extract_messages(output, timestamp=_TS)

        assert [m.content for m in messages] == ["kept"]

    def test_non_string_content_is_serialised(self) -> None:
        output = json.dumps({"role": "assistant", "content": {"k": 1}})

        messages = extract_messages(output, timestamp=_TS)

        assert json.loads(messages[0].content) == {"k": 1}

    def test_tool_markers_become_tool_calls(self) -> None:
        output = "Planning\n[TOOL: write_file] README.md\n[TOOL: bash] ls\nDone"

        messages = extract_messages(output, timestamp=_TS)

        assert len(messages) == 1
        calls = messages[0].tool_calls
        assert [c.name for c in calls] == ["write_file", "bash"]
        assert calls[0].arguments == {"input": "README.md"}
        assert messages[0].content == "Planning\nDone"

    def test_plain_text_is_single_assistant_message(self) -> None:
        messages = extract_messages("  I made the change.  ", timestamp=_TS)

        assert len(messages) == 1
        assert messages[0].role == "assistant"
        assert messages[0].content == "I made the change."
        assert messages[0].timestamp == _TS

    def test_empty_output_gets_placeholder(self) -> None:
        messages = extract_messages("", timestamp=_TS)

        assert messages[0].content == "No output captured"


class TestExtractUsage:
    """extract_usage() reads JSON usage objects or text summaries."""

    def test_anthropic_style_json_usage(self) -> None:
        output = json.dumps(
            {
                "type": "result",
                "usage": {"input_tokens": 100, "output_tokens": 40},
                "total_cost_usd": 0.01,
            }
        )

        usage = extract_usage(output)

        assert usage.prompt_tokens == 100
        assert usage.completion_tokens == 40
        assert usage.total_tokens == 140
        assert usage.estimated_cost_usd == pytest.approx(0.01)

    def test_openai_style_json_usage_keeps_total(self) -> None:
        output = json.dumps(
            {"usage": {"prompt_tokens": 7, "completion_tokens": 3, "total_tokens": 11}}
        )

        usage = extract_usage(output)

        assert usage.total_tokens == 11

    def test_last_json_usage_wins(self) -> None:
        output = "\n".join(
            [
                json.dumps({"usage": {"input_tokens": 1, "output_tokens": 1}}),
                json.dumps({"usage": {"input_tokens": 5, "output_tokens": 5}}),
            ]
        )

        assert extract_usage(output).prompt_tokens == 5

    def test_text_summary_lines(self) -> None:
        usage = extract_usage("Input tokens: 12\nOutput Tokens: 8")

        assert usage.prompt_tokens == 12
        assert usage.completion_tokens == 8
        assert usage.estimated_cost_usd is None

    def test_unrecognised_output_is_zero_usage(self) -> None:
        usage = extract_usage("nothing here")

        assert usage.total_tokens == 0
        assert usage.estimated_cost_usd is None
