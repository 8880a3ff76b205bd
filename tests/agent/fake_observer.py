"""FakeAgentObserver — records agent domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExecutionStartedEvent:
    agent: str
    working_directory: str
    timeout_ms: int


@dataclass(frozen=True)
class ExecutionCompletedEvent:
    agent: str
    status: str
    exit_code: int | None
    duration_ms: int


@dataclass(frozen=True)
class ExecutionTimedOutEvent:
    agent: str
    timeout_ms: int


@dataclass(frozen=True)
class ExecutionFailedEvent:
    agent: str
    reason: str


class FakeAgentObserver:
    """Records all emitted agent events as typed frozen dataclasses.

    Use in tests to assert which events were emitted and with what data,
    without mocking or patching.
    """

    def __init__(self) -> None:
        self.started: list[ExecutionStartedEvent] = []
        self.completed: list[ExecutionCompletedEvent] = []
        self.timed_out: list[ExecutionTimedOutEvent] = []
        self.failed: list[ExecutionFailedEvent] = []

    def agent_execution_started(
        self, agent: str, working_directory: str, timeout_ms: int
    ) -> None:
        self.started.append(
            ExecutionStartedEvent(
                agent=agent, working_directory=working_directory, timeout_ms=timeout_ms
            )
        )

    def agent_execution_completed(
        self, agent: str, status: str, exit_code: int | None, duration_ms: int
    ) -> None:
        self.completed.append(
            ExecutionCompletedEvent(
                agent=agent, status=status, exit_code=exit_code, duration_ms=duration_ms
            )
        )

    def agent_execution_timed_out(self, agent: str, timeout_ms: int) -> None:
        self.timed_out.append(ExecutionTimedOutEvent(agent=agent, timeout_ms=timeout_ms))

    def agent_execution_failed(self, agent: str, reason: str) -> None:
        self.failed.append(ExecutionFailedEvent(agent=agent, reason=reason))
