"""PostEvaluationResult value object — the outcome of one hook run after a bundle is saved."""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from ybench.evaluator.domain.result import EvaluationErrorDetail

type PostEvaluationStatus = Literal["success", "failed", "skipped"]


class PostEvaluationResult(BaseModel, frozen=True):
    post_evaluator: str = Field(min_length=1)
    status: PostEvaluationStatus
    message: str
    duration_ms: int = Field(ge=0)
    timestamp: datetime
    metadata: dict[str, Any] = {}
    error: EvaluationErrorDetail | None = None

    @classmethod
    def of(
        cls,
        post_evaluator: str,
        status: PostEvaluationStatus,
        message: str,
        duration_ms: int = 0,
        metadata: dict[str, Any] | None = None,
        error: EvaluationErrorDetail | None = None,
    ) -> "PostEvaluationResult":
        return cls(
            post_evaluator=post_evaluator,
            status=status,
            message=message,
            duration_ms=duration_ms,
            timestamp=datetime.now(UTC),
            metadata=metadata or {},
            error=error,
        )
