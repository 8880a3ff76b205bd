"""AgentExecutionResult value object — the outcome of running an agent in a workspace."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

type ExecutionStatus = Literal["success", "failed", "timeout"]


class AgentError(BaseModel, frozen=True):
    message: str
    timestamp: datetime
    stack_trace: str | None = None


class AgentExecutionResult(BaseModel, frozen=True):
    """Immutable record of one agent execution.

    `timeout` means the wall-clock limit elapsed and the agent was killed;
    `failed` means it ran to completion (or could not start) unsuccessfully.
    """

    exit_code: int | None
    status: ExecutionStatus
    raw_output: str
    started_at: datetime
    completed_at: datetime
    duration_ms: int = Field(ge=0)
    errors: list[AgentError] = []
    working_directory: str
