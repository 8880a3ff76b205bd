"""EvaluationResult value object — one evaluator's verdict for one run."""

import traceback
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

type EvaluationStatus = Literal["passed", "failed", "skipped"]


class EvaluationArtifact(BaseModel, frozen=True):
    """A file an evaluator wrote; `path` is relative to the run's artifacts directory."""

    type: str
    path: str
    description: str | None = None


class EvaluationErrorDetail(BaseModel, frozen=True):
    message: str
    stack_trace: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "EvaluationErrorDetail":
        return cls(
            message=str(exc) or type(exc).__name__,
            stack_trace="".join(traceback.format_exception(exc)),
        )


class EvaluationResult(BaseModel, frozen=True):
    """Immutable verdict produced exactly once per evaluator per run."""

    evaluator: str = Field(min_length=1)
    status: EvaluationStatus
    metrics: dict[str, Any] = {}
    message: str
    duration_ms: int = Field(ge=0)
    timestamp: datetime
    assertions: dict[str, Any] | None = None
    artifacts: list[EvaluationArtifact] = []
    error: EvaluationErrorDetail | None = None

    @classmethod
    def skipped(
        cls,
        evaluator: str,
        message: str,
        duration_ms: int = 0,
        error: EvaluationErrorDetail | None = None,
    ) -> "EvaluationResult":
        return cls(
            evaluator=evaluator,
            status="skipped",
            message=message,
            duration_ms=duration_ms,
            timestamp=datetime.now(UTC),
            error=error,
        )
