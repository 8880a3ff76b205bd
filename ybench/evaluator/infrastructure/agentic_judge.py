"""AgenticJudgeEvaluator — LLM-judged assertions about the agent's change set."""

import time
from datetime import UTC, datetime

import litellm
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ybench.core.errors import YBenchError
from ybench.evaluator.domain.context import EvaluationContext
from ybench.evaluator.domain.observer import EvaluatorObserver
from ybench.evaluator.domain.result import (
    EvaluationErrorDetail,
    EvaluationResult,
    EvaluationStatus,
)
from ybench.git.infrastructure.client import GitClient

DEFAULT_MAX_DIFF_CHARS = 50_000

_SYSTEM_PROMPT = """\
You are an expert code reviewer judging the work of an autonomous coding agent. \
You are given the agent's change set as a unified diff, the agent's final \
message, and a list of named assertions. Decide for each assertion whether the \
change set satisfies it. Judge only from the evidence provided; if the diff does \
not show that an assertion holds, it fails.

## Output Format

Respond with a JSON object containing:
- assertions: list of objects, one per assertion, each with
  - name: the assertion name exactly as given
  - passed: boolean verdict
  - reasoning: brief explanation grounded in the diff
- summary: one or two sentences on the overall quality of the change
"""


class AgenticJudgeConfig(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    model: str = Field(min_length=1)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    assertions: dict[str, str] = Field(min_length=1)
    max_diff_chars: int = Field(default=DEFAULT_MAX_DIFF_CHARS, gt=0)


class AssertionVerdict(BaseModel, frozen=True):
    name: str
    passed: bool
    reasoning: str


class JudgeVerdict(BaseModel, frozen=True):
    """Structured response expected from the judge model."""

    assertions: list[AssertionVerdict]
    summary: str


class AgenticJudgeEvaluator:
    """Asks an LLM judge whether the change set satisfies each configured assertion.

    The evaluator passes iff every configured assertion is judged passed. An
    assertion the judge leaves out counts as failed. Judge invocation or
    response parsing errors yield `skipped` so that an unavailable model never
    reads as a verdict on the agent.
    """

    description = (
        "Uses an LLM judge to check natural-language assertions against the"
        " agent's change set and final message."
    )
    requires_expected_reference = False

    def __init__(
        self,
        name: str,
        observer: EvaluatorObserver,
        git: GitClient | None = None,
    ) -> None:
        self.name = name
        self._observer = observer
        self._git = git

    async def check_preconditions(self, context: EvaluationContext) -> bool:
        return (context.modified_dir / ".git").exists()

    async def evaluate(self, context: EvaluationContext) -> EvaluationResult:
        start = time.monotonic()
        if not await self.check_preconditions(context):
            return EvaluationResult.skipped(
                evaluator=self.name,
                message="Git repository not found or not accessible",
                error=EvaluationErrorDetail(
                    message=f"{context.modified_dir} is not a git repository"
                ),
            )

        try:
            config = AgenticJudgeConfig.model_validate(context.config)
        except ValidationError as exc:
            return _skipped(self.name, start, f"invalid configuration: {exc}", exc)

        git = (
            self._git
            if self._git is not None
            else GitClient(context.run_config.git_timeout_ms)
        )
        try:
            patch = await git.working_tree_patch(context.modified_dir, "HEAD")
        except YBenchError as exc:
            return _skipped(self.name, start, str(exc), exc)

        user_message = _build_user_message(
            patch=patch,
            final_message=context.agent_log.final_message,
            config=config,
        )
        try:
            response = await litellm.acompletion(
                model=config.model,
                temperature=config.temperature,
                response_format=JudgeVerdict,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": user_message},
                ],
            )
        except Exception as exc:
            self._observer.evaluator_judge_failed(
                evaluator=self.name, model=config.model, reason=str(exc)
            )
            return _skipped(self.name, start, f"judge invocation failed: {exc}", exc)

        raw_content: str = response.choices[0].message.content
        try:
            verdict = JudgeVerdict.model_validate_json(raw_content)
        except ValidationError as exc:
            reason = f"Failed to parse judge response: {exc}"
            self._observer.evaluator_judge_failed(
                evaluator=self.name, model=config.model, reason=reason
            )
            return _skipped(self.name, start, reason, exc)

        by_name = {v.name: v for v in verdict.assertions}
        results = {
            name: by_name.get(
                name,
                AssertionVerdict(
                    name=name, passed=False, reasoning="No verdict returned by judge"
                ),
            )
            for name in config.assertions
        }
        failed = [name for name, v in results.items() if not v.passed]
        status: EvaluationStatus = "failed" if failed else "passed"
        passed_count = len(results) - len(failed)
        message = f"{passed_count}/{len(results)} assertions passed"
        if failed:
            message = f"✗ {message} | Failed: {', '.join(failed)}"
        else:
            message = f"✓ {message}"

        return EvaluationResult(
            evaluator=self.name,
            status=status,
            metrics={
                "model": config.model,
                "assertions_passed": passed_count,
                "assertions_total": len(results),
                "verdicts": [v.model_dump() for v in results.values()],
                "summary": verdict.summary,
                "diff_truncated": len(patch) > config.max_diff_chars,
            },
            message=message,
            duration_ms=_elapsed_ms(start),
            timestamp=datetime.now(UTC),
            assertions=dict(config.assertions),
        )


def _build_user_message(
    patch: str, final_message: str | None, config: AgenticJudgeConfig
) -> str:
    diff = patch[: config.max_diff_chars]
    if len(patch) > config.max_diff_chars:
        diff += f"\n[... diff truncated at {config.max_diff_chars} characters ...]"
    assertions = "\n".join(
        f"- {name}: {requirement}" for name, requirement in config.assertions.items()
    )
    return (
        f"## Assertions\n{assertions}\n\n"
        f"## Change Set\n```diff\n{diff or '(no changes)'}\n```\n\n"
        f"## Agent Final Message\n{final_message or '(none)'}"
    )


def _skipped(
    name: str, start: float, reason: str, exc: BaseException
) -> EvaluationResult:
    return EvaluationResult.skipped(
        evaluator=name,
        message=f"Evaluation skipped: {reason}",
        duration_ms=_elapsed_ms(start),
        error=EvaluationErrorDetail.from_exception(exc),
    )


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
