"""Top-level RunConfig aggregate — the immutable input to one evaluation."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from ybench.config.domain.agent import AgentConfig
from ybench.config.domain.evaluator import EvaluatorConfig
from ybench.config.domain.post_evaluation import PostEvaluationConfig

DEFAULT_TIMEOUT_MS = 300_000


class RunConfig(BaseModel, frozen=True):
    """Root configuration aggregate for a single benchmark run."""

    name: str = Field(min_length=1)
    description: str = ""
    repo: str
    branch: str | None = None
    commit: str | None = None
    expected: str | None = None
    agent: AgentConfig
    evaluators: list[EvaluatorConfig] = Field(min_length=1)
    post_evaluation: list[PostEvaluationConfig] = []
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    git_timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    workspace_dir: Path | None = None
    workspace_name: str | None = None
    run_id: str | None = None
    skip_evaluators_when_unchanged: bool = False

    @field_validator("repo")
    @classmethod
    def _check_repo(cls, value: str) -> str:
        problem = repository_reference_problem(value)
        if problem is not None:
            raise ValueError(problem)
        return value

    @field_validator("branch", "commit", "expected")
    @classmethod
    def _check_revision(cls, value: str | None) -> str | None:
        if value is not None and (not value.strip() or value.startswith("-")):
            raise ValueError(f"invalid git revision {value!r}")
        return value


def repository_reference_problem(repo: str) -> str | None:
    """Describe why repo cannot be handed to `git clone`, or None if it can."""
    if not repo.strip():
        return "repository reference is empty"
    if repo.startswith("-"):
        return f"repository reference {repo!r} looks like a command-line option"
    if any(ord(ch) < 32 for ch in repo):
        return "repository reference contains control characters"
    return None
