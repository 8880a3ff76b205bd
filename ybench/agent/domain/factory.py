"""AgentFactory protocol — builds the Agent for a run's AgentConfig."""

from typing import Protocol

from ybench.agent.domain.agent import Agent
from ybench.config.domain.agent import AgentConfig


class AgentFactory(Protocol):
    def create(self, config: AgentConfig) -> Agent: ...
