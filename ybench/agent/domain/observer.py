"""AgentObserver port — domain events emitted during agent executions."""

from typing import Protocol


class AgentObserver(Protocol):
    """Observer port for agent domain events.

    Implementations may log to structlog or record for tests.
    """

    def agent_execution_started(
        self, agent: str, working_directory: str, timeout_ms: int
    ) -> None: ...

    def agent_execution_completed(
        self, agent: str, status: str, exit_code: int | None, duration_ms: int
    ) -> None: ...

    def agent_execution_timed_out(self, agent: str, timeout_ms: int) -> None: ...

    def agent_execution_failed(self, agent: str, reason: str) -> None: ...
