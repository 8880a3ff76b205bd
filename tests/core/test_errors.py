"""Tests verifying the YBenchError type hierarchy."""

from pathlib import Path

from ybench.agent.infrastructure.errors import (
    AgentConfigurationError,
    AgentTypeNotSupportedError,
)
from ybench.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)
from ybench.core.errors import YBenchError
from ybench.evaluation.application.errors import RunConfigurationError
from ybench.git.infrastructure.errors import GitCommandError, GitTimeoutError
from ybench.workspace.infrastructure.errors import LockedError, WorkspaceError


class TestYBenchErrorHierarchy:
    """All ybench-specific exceptions inherit from YBenchError."""

    def test_config_errors_are_ybench_errors(self) -> None:
        assert isinstance(MissingEnvVarsError(missing_vars=["X"]), YBenchError)
        assert isinstance(ConfigValidationError(reason="bad"), YBenchError)
        assert isinstance(ConfigLoadError(path=Path("/x.yaml")), YBenchError)

    def test_agent_errors_are_ybench_errors(self) -> None:
        assert isinstance(
            AgentTypeNotSupportedError(agent_type="x", supported=["command"]),
            YBenchError,
        )
        assert isinstance(
            AgentConfigurationError(agent_type="command", reason="no argv"),
            YBenchError,
        )

    def test_run_configuration_error_is_ybench_error(self) -> None:
        assert isinstance(RunConfigurationError(reason="bad repo"), YBenchError)

    def test_git_errors_are_ybench_errors(self) -> None:
        assert isinstance(
            GitCommandError(args=["git", "clone"], exit_code=128, stderr="fatal"),
            YBenchError,
        )
        assert isinstance(
            GitTimeoutError(args=["git", "clone"], timeout_ms=10), YBenchError
        )

    def test_locked_error_is_workspace_error(self) -> None:
        error = LockedError(path=Path("/w/.lock"), holder_pid=42)

        assert isinstance(error, WorkspaceError)
        assert error.code == "WORKSPACE_LOCKED"
        assert error.retriable is True

    def test_ybench_error_defaults_to_not_retriable(self) -> None:
        assert YBenchError("boom").retriable is False


class TestErrorMessages:
    """Messages name the failing operation and its cause."""

    def test_git_command_error_uses_last_stderr_line(self) -> None:
        error = GitCommandError(
            args=["git", "clone", "--quiet"],
            exit_code=128,
            stderr="Cloning...\nfatal: repository not found\n",
        )

        assert str(error) == (
            "Failed to run 'git clone': exit code 128: fatal: repository not found"
        )

    def test_workspace_error_includes_code(self) -> None:
        error = WorkspaceError(code="CLONE_FAILED", reason="no such repo")

        assert str(error) == "Failed to create workspace [CLONE_FAILED]: no such repo"
        assert error.reason == "no such repo"

    def test_missing_env_vars_are_sorted(self) -> None:
        error = MissingEnvVarsError(missing_vars=["B", "A"])

        assert "A, B" in str(error)
