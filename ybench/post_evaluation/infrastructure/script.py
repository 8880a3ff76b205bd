"""ScriptPostEvaluation — runs a user command with the run's result paths in its environment."""

import os
import shlex
import time
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ybench.core.process import run_process
from ybench.evaluator.domain.result import EvaluationErrorDetail
from ybench.post_evaluation.domain.context import PostEvaluationContext
from ybench.post_evaluation.domain.observer import PostEvaluationObserver
from ybench.post_evaluation.domain.result import PostEvaluationResult

_OUTPUT_PREVIEW_CHARS = 1000


class ScriptSettings(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    command: str = Field(min_length=1)
    args: list[str] = []
    env: dict[str, str] = {}
    timeout_ms: int = Field(default=30_000, gt=0)
    working_dir: Path | None = None


class ScriptPostEvaluation:
    """Runs `command` through `/bin/sh -c` with each arg shell-quoted and appended.

    RESULTS_PATH, ARTIFACTS_DIR, WORKSPACE_DIR, TEST_CASE_NAME and
    OVERALL_STATUS are exported to the script and substituted for `${NAME}`
    in args. Exit code 0 is success; anything else, including a timeout,
    is failed.
    """

    name = "script"
    description = "Executes a custom script with access to evaluation results"

    def __init__(self, observer: PostEvaluationObserver) -> None:
        self._observer = observer

    async def check_preconditions(self, context: PostEvaluationContext) -> bool:
        settings = self._settings(context)
        return settings is not None and bool(settings.command.strip())

    async def execute(self, context: PostEvaluationContext) -> PostEvaluationResult:
        start = time.monotonic()
        settings = self._settings(context)
        if settings is None:
            return PostEvaluationResult.of(
                post_evaluator=self.name,
                status="skipped",
                message="Invalid script configuration",
            )

        variables = script_variables(context)
        args = [substitute_variables(arg, variables) for arg in settings.args]
        shell_command = " ".join([settings.command, *(shlex.quote(a) for a in args)])
        try:
            result = await run_process(
                ["/bin/sh", "-c", shell_command],
                cwd=settings.working_dir or Path.cwd(),
                timeout_seconds=settings.timeout_ms / 1000,
                env={**os.environ, **variables, **settings.env},
            )
        except OSError as exc:
            return PostEvaluationResult.of(
                post_evaluator=self.name,
                status="failed",
                message="Failed to execute script",
                duration_ms=_elapsed_ms(start),
                error=EvaluationErrorDetail.from_exception(exc),
            )

        metadata = {
            "command": settings.command,
            "exit_code": result.exit_code,
            "stdout": result.stdout[:_OUTPUT_PREVIEW_CHARS],
            "stderr": result.stderr[:_OUTPUT_PREVIEW_CHARS],
        }
        if result.timed_out:
            message = f"Script timed out after {settings.timeout_ms}ms"
        elif result.exit_code != 0:
            message = f"Script exited with code {result.exit_code}"
        else:
            return PostEvaluationResult.of(
                post_evaluator=self.name,
                status="success",
                message="Script completed successfully",
                duration_ms=_elapsed_ms(start),
                metadata=metadata,
            )
        return PostEvaluationResult.of(
            post_evaluator=self.name,
            status="failed",
            message=message,
            duration_ms=_elapsed_ms(start),
            metadata=metadata,
            error=EvaluationErrorDetail(
                message=message, stack_trace=result.stderr or None
            ),
        )

    def _settings(self, context: PostEvaluationContext) -> ScriptSettings | None:
        try:
            return ScriptSettings.model_validate(context.config)
        except ValidationError as exc:
            self._observer.post_evaluation_config_invalid(hook=self.name, reason=str(exc))
            return None


def script_variables(context: PostEvaluationContext) -> dict[str, str]:
    return {
        "RESULTS_PATH": str(context.bundle_path) if context.bundle_path else "",
        "ARTIFACTS_DIR": str(context.artifacts_dir),
        "WORKSPACE_DIR": str(context.workspace_dir),
        "TEST_CASE_NAME": context.bundle.test_case.name,
        "OVERALL_STATUS": context.bundle.summary.overall_status,
    }


def substitute_variables(text: str, variables: dict[str, str]) -> str:
    for name, value in variables.items():
        text = text.replace(f"${{{name}}}", value)
    return text


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
