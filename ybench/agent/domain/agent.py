"""Agent protocol — the execution boundary between the orchestrator and a coding agent."""

from typing import Protocol

from ybench.agent.domain.log import AgentLog
from ybench.agent.domain.result import AgentExecutionResult
from ybench.workspace.domain.workspace import WorkspacePaths


class Agent(Protocol):
    """Runs a coding agent inside a workspace's modified tree.

    `execute` never raises for agent-side problems: launch failures, crashes
    and timeouts are all reported through the returned result's status.
    """

    @property
    def name(self) -> str: ...

    async def execute(
        self, paths: WorkspacePaths, timeout_ms: int
    ) -> AgentExecutionResult: ...

    def normalize_log(
        self, raw_output: str, result: AgentExecutionResult
    ) -> AgentLog: ...
