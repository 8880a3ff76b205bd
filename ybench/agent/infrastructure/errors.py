"""Error types raised by agent infrastructure."""

from ybench.core.errors import YBenchError


class AgentTypeNotSupportedError(YBenchError):
    """Raised when the agent type specified in config is not a known agent type."""

    def __init__(self, agent_type: str, supported: list[str]) -> None:
        self.agent_type = agent_type
        super().__init__(
            f"Failed to create agent: unsupported agent type '{agent_type}'"
            f" (supported: {', '.join(supported)})"
        )


class AgentConfigurationError(YBenchError):
    """Raised when an AgentConfig lacks what its agent type requires."""

    def __init__(self, agent_type: str, reason: str) -> None:
        super().__init__(f"Failed to create agent '{agent_type}': {reason}")
