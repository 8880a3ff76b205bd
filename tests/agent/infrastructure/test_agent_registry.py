"""Tests for RegistryAgentFactory."""

import pytest

from ybench.agent.infrastructure.claude_sdk import ClaudeAgentSDKAgent
from ybench.agent.infrastructure.command import CommandAgent
from ybench.agent.infrastructure.errors import (
    AgentConfigurationError,
    AgentTypeNotSupportedError,
)
from ybench.agent.infrastructure.registry import (
    RegistryAgentFactory,
    supported_agent_types,
)
from ybench.config.domain.agent import AgentConfig
from tests.agent.fake_observer import FakeAgentObserver


def _make_factory() -> RegistryAgentFactory:
    return RegistryAgentFactory(observer=FakeAgentObserver())


class TestRegistryAgentFactory:
    """create() dispatches on AgentConfig.type."""

    def test_claude_code_sdk_type(self) -> None:
        agent = _make_factory().create(
            AgentConfig(type="claude_code_sdk", prompt="do it")
        )

        assert isinstance(agent, ClaudeAgentSDKAgent)

    def test_command_type(self) -> None:
        agent = _make_factory().create(
            AgentConfig(type="command", prompt="do it", command=["my-agent"])
        )

        assert isinstance(agent, CommandAgent)

    def test_command_type_without_command_raises(self) -> None:
        with pytest.raises(AgentConfigurationError):
            _make_factory().create(AgentConfig(type="command", prompt="do it"))

    def test_unknown_type_raises_with_supported_list(self) -> None:
        with pytest.raises(AgentTypeNotSupportedError) as exc_info:
            _make_factory().create(AgentConfig(type="copilot-cli", prompt="do it"))

        assert exc_info.value.agent_type == "copilot-cli"
        assert "claude_code_sdk" in str(exc_info.value)

    def test_supported_types_are_sorted(self) -> None:
        assert supported_agent_types() == ["claude_code_sdk", "command"]
