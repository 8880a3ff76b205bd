"""AgentLog — the normalized, agent-independent record of one execution."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel

from ybench.agent.domain.result import AgentError, ExecutionStatus
from ybench.core.environment import EnvironmentInfo

AGENT_LOG_VERSION = "1.0.0"


class ToolCallRecord(BaseModel, frozen=True):
    id: str
    name: str
    arguments: dict[str, Any] = {}


class LogMessage(BaseModel, frozen=True):
    role: Literal["system", "user", "assistant", "tool"]
    content: str
    timestamp: datetime | None = None
    tool_calls: list[ToolCallRecord] = []


class TokenUsage(BaseModel, frozen=True):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    estimated_cost_usd: float | None = None


class AgentInfo(BaseModel, frozen=True):
    name: str
    version: str | None = None
    adapter_version: str


class ModelInfo(BaseModel, frozen=True):
    name: str | None = None
    provider: str | None = None
    parameters: dict[str, Any] = {}


class ExecutionInfo(BaseModel, frozen=True):
    started_at: datetime
    completed_at: datetime
    duration_ms: int
    exit_code: int | None
    status: ExecutionStatus


class LogEnvironment(EnvironmentInfo, frozen=True):
    working_directory: str


class AgentLog(BaseModel, frozen=True):
    """Normalized agent log persisted as `artifacts/agent-log.json`."""

    version: str = AGENT_LOG_VERSION
    agent: AgentInfo
    model: ModelInfo
    execution: ExecutionInfo
    messages: list[LogMessage]
    usage: TokenUsage
    errors: list[AgentError] = []
    environment: LogEnvironment

    @property
    def final_message(self) -> str | None:
        """Content of the last assistant message, if any."""
        for message in reversed(self.messages):
            if message.role == "assistant":
                return message.content
        return None
