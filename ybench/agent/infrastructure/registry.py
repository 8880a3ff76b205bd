"""Agent registry — maps AgentConfig.type to the Agent implementation that runs it."""

from collections.abc import Callable

from ybench.agent.domain.agent import Agent
from ybench.agent.domain.observer import AgentObserver
from ybench.agent.infrastructure.claude_sdk import ClaudeAgentSDKAgent
from ybench.agent.infrastructure.command import CommandAgent
from ybench.agent.infrastructure.errors import AgentTypeNotSupportedError
from ybench.config.domain.agent import AgentConfig

type AgentBuilder = Callable[[AgentConfig, AgentObserver], Agent]

_BUILDERS: dict[str, AgentBuilder] = {
    "command": CommandAgent,
    "claude_code_sdk": ClaudeAgentSDKAgent,
}


def supported_agent_types() -> list[str]:
    return sorted(_BUILDERS)


class RegistryAgentFactory:
    """AgentFactory backed by the static type → builder registry.

    Satisfies the AgentFactory protocol structurally.
    """

    def __init__(self, observer: AgentObserver) -> None:
        self._observer = observer

    def create(self, config: AgentConfig) -> Agent:
        """Return the Agent for config.type.

        Raises:
            AgentTypeNotSupportedError: if config.type is not a registered agent type.
            AgentConfigurationError: if config lacks what that agent type requires.
        """
        builder = _BUILDERS.get(config.type)
        if builder is None:
            raise AgentTypeNotSupportedError(
                agent_type=config.type, supported=supported_agent_types()
            )
        return builder(config, self._observer)
