"""ClaudeAgentSDKAgent — agent implementation using the Claude Agent SDK."""

import asyncio
import json
import time
from datetime import UTC, datetime
from typing import Any

from claude_agent_sdk import ClaudeSDKError, query
from claude_agent_sdk.types import (
    AssistantMessage,
    ClaudeAgentOptions,
    ResultMessage,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    UserMessage,
)

from ybench.agent.domain.log import (
    AgentInfo,
    AgentLog,
    ExecutionInfo,
    LogEnvironment,
    LogMessage,
    ModelInfo,
    TokenUsage,
    ToolCallRecord,
)
from ybench.agent.domain.observer import AgentObserver
from ybench.agent.domain.result import (
    AgentError,
    AgentExecutionResult,
    ExecutionStatus,
)
from ybench.config.domain.agent import AgentConfig
from ybench.core.environment import detect_environment
from ybench.workspace.domain.workspace import WorkspacePaths

_AGENT_NAME = "claude-code"
_ADAPTER_VERSION = "1.0.0"


class ClaudeAgentSDKAgent:
    """Agent implementation that delegates to the Claude Agent SDK.

    The SDK session runs with the modified tree as its working directory and
    full tool permissions. Every streamed message is recorded as one JSON line
    in the raw output, which `normalize_log` later turns into an AgentLog.
    """

    def __init__(self, config: AgentConfig, observer: AgentObserver) -> None:
        self._config = config
        self._observer = observer

    @property
    def name(self) -> str:
        return _AGENT_NAME

    async def execute(
        self, paths: WorkspacePaths, timeout_ms: int
    ) -> AgentExecutionResult:
        working_directory = str(paths.modified_dir)
        self._observer.agent_execution_started(
            agent=self.name, working_directory=working_directory, timeout_ms=timeout_ms
        )
        options = ClaudeAgentOptions(
            model=self._config.model,
            system_prompt=self._config.system_prompt,
            cwd=paths.modified_dir,
            env=dict(self._config.env),
            permission_mode="bypassPermissions",
            setting_sources=[],
        )

        started_at = datetime.now(UTC)
        start = time.monotonic()
        events: list[dict[str, Any]] = []
        errors: list[AgentError] = []
        result_message: ResultMessage | None = None
        status: ExecutionStatus = "success"

        try:
            async with asyncio.timeout(timeout_ms / 1000):
                async for message in query(prompt=self._config.prompt, options=options):
                    events.extend(_to_events(message))
                    if isinstance(message, ResultMessage):
                        result_message = message
        except TimeoutError:
            status = "timeout"
            errors.append(
                AgentError(
                    message=f"Agent exceeded timeout of {timeout_ms}ms and was terminated",
                    timestamp=datetime.now(UTC),
                )
            )
            self._observer.agent_execution_timed_out(
                agent=self.name, timeout_ms=timeout_ms
            )
        except ClaudeSDKError as exc:
            status = "failed"
            errors.append(AgentError(message=str(exc), timestamp=datetime.now(UTC)))
            self._observer.agent_execution_failed(agent=self.name, reason=str(exc))
        except Exception as exc:
            # The SDK raises a bare Exception when its message reader hits a
            # fatal error (e.g. the CLI subprocess exits).
            status = "failed"
            errors.append(AgentError(message=str(exc), timestamp=datetime.now(UTC)))
            self._observer.agent_execution_failed(agent=self.name, reason=str(exc))

        if status == "success":
            if result_message is None:
                status = "failed"
                errors.append(
                    AgentError(
                        message="no ResultMessage in response stream",
                        timestamp=datetime.now(UTC),
                    )
                )
            elif result_message.is_error:
                status = "failed"
                errors.append(
                    AgentError(
                        message=f"agent returned error response: {result_message.result}",
                        timestamp=datetime.now(UTC),
                    )
                )

        completed_at = datetime.now(UTC)
        duration_ms = int((time.monotonic() - start) * 1000)
        exit_code = None if status == "timeout" else (0 if status == "success" else 1)
        self._observer.agent_execution_completed(
            agent=self.name, status=status, exit_code=exit_code, duration_ms=duration_ms
        )
        return AgentExecutionResult(
            exit_code=exit_code,
            status=status,
            raw_output="\n".join(json.dumps(event, default=str) for event in events),
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=duration_ms,
            errors=errors,
            working_directory=working_directory,
        )

    def normalize_log(self, raw_output: str, result: AgentExecutionResult) -> AgentLog:
        messages: list[LogMessage] = [
            LogMessage(
                role="user", content=self._config.prompt, timestamp=result.started_at
            )
        ]
        usage = TokenUsage()
        for line in raw_output.splitlines():
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(event, dict):
                continue
            kind = event.get("type")
            if kind == "assistant":
                messages.append(_assistant_message(event))
            elif kind == "tool_result":
                messages.append(
                    LogMessage(role="tool", content=str(event.get("content") or ""))
                )
            elif kind == "result":
                usage = _usage_from_result(event)
                if event.get("result"):
                    messages.append(
                        LogMessage(
                            role="assistant",
                            content=str(event["result"]),
                            timestamp=result.completed_at,
                        )
                    )

        environment = detect_environment()
        return AgentLog(
            agent=AgentInfo(name=self.name, adapter_version=_ADAPTER_VERSION),
            model=ModelInfo(name=self._config.model, provider="anthropic"),
            execution=ExecutionInfo(
                started_at=result.started_at,
                completed_at=result.completed_at,
                duration_ms=result.duration_ms,
                exit_code=result.exit_code,
                status=result.status,
            ),
            messages=messages,
            usage=usage,
            errors=result.errors,
            environment=LogEnvironment(
                **environment.model_dump(),
                working_directory=result.working_directory,
            ),
        )


def _to_events(message: object) -> list[dict[str, Any]]:
    """Serialise one SDK message into JSON-safe event dicts."""
    if isinstance(message, AssistantMessage):
        text = "".join(b.text for b in message.content if isinstance(b, TextBlock))
        tool_uses = [
            {"id": b.id, "name": b.name, "input": b.input}
            for b in message.content
            if isinstance(b, ToolUseBlock)
        ]
        return [{"type": "assistant", "text": text, "tool_uses": tool_uses}]
    if isinstance(message, UserMessage) and isinstance(message.content, list):
        return [
            {
                "type": "tool_result",
                "tool_use_id": block.tool_use_id,
                "content": _tool_result_text(block.content),
                "is_error": bool(block.is_error),
            }
            for block in message.content
            if isinstance(block, ToolResultBlock)
        ]
    if isinstance(message, ResultMessage):
        return [
            {
                "type": "result",
                "is_error": message.is_error,
                "num_turns": message.num_turns,
                "duration_ms": message.duration_ms,
                "total_cost_usd": message.total_cost_usd,
                "usage": message.usage,
                "result": message.result,
            }
        ]
    return []


def _tool_result_text(content: object) -> str | None:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return " ".join(
            str(item.get("text", "")) for item in content if isinstance(item, dict)
        )
    return None


def _assistant_message(event: dict[str, Any]) -> LogMessage:
    return LogMessage(
        role="assistant",
        content=str(event.get("text") or ""),
        tool_calls=[
            ToolCallRecord(
                id=str(use.get("id", "")),
                name=str(use.get("name", "")),
                arguments=use.get("input") or {},
            )
            for use in event.get("tool_uses", [])
            if isinstance(use, dict)
        ],
    )


def _usage_from_result(event: dict[str, Any]) -> TokenUsage:
    raw = event.get("usage") or {}
    prompt = int(raw.get("input_tokens") or 0)
    completion = int(raw.get("output_tokens") or 0)
    cost = event.get("total_cost_usd")
    return TokenUsage(
        prompt_tokens=prompt,
        completion_tokens=completion,
        total_tokens=prompt + completion,
        estimated_cost_usd=float(cost) if cost is not None else None,
    )
