"""Structlog implementation of the AgentObserver port."""

import structlog


class StructlogAgentObserver:
    """Delegates agent domain events to structlog.

    Satisfies the AgentObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def agent_execution_started(
        self, agent: str, working_directory: str, timeout_ms: int
    ) -> None:
        self._log.info(
            "agent.execution_started",
            agent=agent,
            working_directory=working_directory,
            timeout_ms=timeout_ms,
        )

    def agent_execution_completed(
        self, agent: str, status: str, exit_code: int | None, duration_ms: int
    ) -> None:
        self._log.info(
            "agent.execution_completed",
            agent=agent,
            status=status,
            exit_code=exit_code,
            duration_ms=duration_ms,
        )

    def agent_execution_timed_out(self, agent: str, timeout_ms: int) -> None:
        self._log.warning("agent.execution_timed_out", agent=agent, timeout_ms=timeout_ms)

    def agent_execution_failed(self, agent: str, reason: str) -> None:
        self._log.error("agent.execution_failed", agent=agent, reason=reason)
