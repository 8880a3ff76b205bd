"""CommandAgent — runs an arbitrary agent CLI as a subprocess in the modified tree."""

import os
import time
from datetime import UTC, datetime

from ybench.agent.domain.log import (
    AgentInfo,
    AgentLog,
    ExecutionInfo,
    LogEnvironment,
    LogMessage,
    ModelInfo,
)
from ybench.agent.domain.observer import AgentObserver
from ybench.agent.domain.result import (
    AgentError,
    AgentExecutionResult,
    ExecutionStatus,
)
from ybench.agent.infrastructure.errors import AgentConfigurationError
from ybench.agent.infrastructure.log_extraction import (
    extract_messages,
    extract_usage,
    strip_ansi,
)
from ybench.config.domain.agent import AgentConfig
from ybench.core.environment import detect_environment
from ybench.core.process import run_process
from ybench.workspace.domain.workspace import WorkspacePaths

_PROMPT_PLACEHOLDER = "{prompt}"
_ADAPTER_VERSION = "1.0.0"


class CommandAgent:
    """Agent that shells out to `config.command` with the prompt substituted in.

    The child runs in its own process group with the modified tree as its
    working directory. Stdout and stderr are captured together as the raw
    output. When the wall-clock limit elapses the whole group is killed and
    the result status is `timeout`.
    """

    def __init__(self, config: AgentConfig, observer: AgentObserver) -> None:
        if not config.command:
            raise AgentConfigurationError(
                agent_type=config.type, reason="'command' must list the argv to run"
            )
        self._config = config
        self._observer = observer

    @property
    def name(self) -> str:
        return os.path.basename(self._config.command[0])

    async def execute(
        self, paths: WorkspacePaths, timeout_ms: int
    ) -> AgentExecutionResult:
        argv = [
            part.replace(_PROMPT_PLACEHOLDER, self._config.prompt)
            for part in self._config.command
        ]
        env = {**os.environ, **self._config.env}
        working_directory = str(paths.modified_dir)

        self._observer.agent_execution_started(
            agent=self.name, working_directory=working_directory, timeout_ms=timeout_ms
        )
        started_at = datetime.now(UTC)
        start = time.monotonic()
        try:
            process = await run_process(
                argv,
                cwd=paths.modified_dir,
                timeout_seconds=timeout_ms / 1000,
                env=env,
                merge_stderr=True,
            )
        except OSError as exc:
            completed_at = datetime.now(UTC)
            reason = f"cannot launch {argv[0]}: {exc}"
            self._observer.agent_execution_failed(agent=self.name, reason=reason)
            return AgentExecutionResult(
                exit_code=None,
                status="failed",
                raw_output="",
                started_at=started_at,
                completed_at=completed_at,
                duration_ms=int((time.monotonic() - start) * 1000),
                errors=[AgentError(message=reason, timestamp=completed_at)],
                working_directory=working_directory,
            )

        completed_at = datetime.now(UTC)
        duration_ms = int((time.monotonic() - start) * 1000)
        errors: list[AgentError] = []
        status: ExecutionStatus
        if process.timed_out:
            status = "timeout"
            errors.append(
                AgentError(
                    message=f"Agent exceeded timeout of {timeout_ms}ms and was terminated",
                    timestamp=completed_at,
                )
            )
            self._observer.agent_execution_timed_out(
                agent=self.name, timeout_ms=timeout_ms
            )
        elif process.exit_code != 0:
            status = "failed"
            errors.append(
                AgentError(
                    message=f"Agent exited with code {process.exit_code}",
                    timestamp=completed_at,
                )
            )
        else:
            status = "success"

        self._observer.agent_execution_completed(
            agent=self.name,
            status=status,
            exit_code=None if process.timed_out else process.exit_code,
            duration_ms=duration_ms,
        )
        return AgentExecutionResult(
            exit_code=None if process.timed_out else process.exit_code,
            status=status,
            raw_output=process.stdout,
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=duration_ms,
            errors=errors,
            working_directory=working_directory,
        )

    def normalize_log(self, raw_output: str, result: AgentExecutionResult) -> AgentLog:
        clean = strip_ansi(raw_output)
        messages = [
            LogMessage(
                role="user", content=self._config.prompt, timestamp=result.started_at
            ),
            *extract_messages(clean, timestamp=result.completed_at),
        ]
        environment = detect_environment()
        return AgentLog(
            agent=AgentInfo(name=self.name, adapter_version=_ADAPTER_VERSION),
            model=ModelInfo(name=self._config.model),
            execution=ExecutionInfo(
                started_at=result.started_at,
                completed_at=result.completed_at,
                duration_ms=result.duration_ms,
                exit_code=result.exit_code,
                status=result.status,
            ),
            messages=messages,
            usage=extract_usage(clean),
            errors=result.errors,
            environment=LogEnvironment(
                **environment.model_dump(),
                working_directory=result.working_directory,
            ),
        )
