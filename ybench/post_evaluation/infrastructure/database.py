"""DatabasePostEvaluation — appends each run's results to a JSON Lines file."""

import asyncio
import json
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from ybench.evaluation.domain.bundle import ResultsBundle
from ybench.evaluator.domain.result import EvaluationErrorDetail
from ybench.post_evaluation.domain.context import PostEvaluationContext
from ybench.post_evaluation.domain.observer import PostEvaluationObserver
from ybench.post_evaluation.domain.result import PostEvaluationResult

# Dropped from each evaluator entry when only a summary is exported.
_SUMMARY_EXCLUDE: dict[str, Any] = {
    "agent": {"errors"},
    "evaluators": {"__all__": {"assertions", "artifacts", "error"}},
}


class DatabaseSettings(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    type: Literal["json-file"] = "json-file"
    output_path: Path
    include_full_bundle: bool = True
    append: bool = True


class DatabasePostEvaluation:
    """Writes one JSON line per run, stamped with `exported_at`, for time-series analysis."""

    name = "database"
    description = "Exports evaluation results to a JSON Lines file"

    def __init__(self, observer: PostEvaluationObserver) -> None:
        self._observer = observer

    async def check_preconditions(self, context: PostEvaluationContext) -> bool:
        settings = self._settings(context)
        if settings is None:
            return False
        try:
            await asyncio.to_thread(
                settings.output_path.resolve().parent.mkdir, parents=True, exist_ok=True
            )
        except OSError as exc:
            self._observer.post_evaluation_config_invalid(hook=self.name, reason=str(exc))
            return False
        return True

    async def execute(self, context: PostEvaluationContext) -> PostEvaluationResult:
        start = time.monotonic()
        settings = self._settings(context)
        if settings is None:
            return PostEvaluationResult.of(
                post_evaluator=self.name,
                status="skipped",
                message="Invalid database configuration",
            )

        output_path = settings.output_path.resolve()
        record = export_record(context.bundle, full=settings.include_full_bundle)
        try:
            await asyncio.to_thread(
                _write_line, output_path, json.dumps(record), settings.append
            )
        except OSError as exc:
            return PostEvaluationResult.of(
                post_evaluator=self.name,
                status="failed",
                message="Failed to export results",
                duration_ms=_elapsed_ms(start),
                error=EvaluationErrorDetail.from_exception(exc),
            )
        return PostEvaluationResult.of(
            post_evaluator=self.name,
            status="success",
            message=f"Successfully exported results to {output_path}",
            duration_ms=_elapsed_ms(start),
            metadata={
                "output_path": str(output_path),
                "type": settings.type,
                "append": settings.append,
            },
        )

    def _settings(self, context: PostEvaluationContext) -> DatabaseSettings | None:
        try:
            return DatabaseSettings.model_validate(context.config)
        except ValidationError as exc:
            self._observer.post_evaluation_config_invalid(hook=self.name, reason=str(exc))
            return None


def export_record(bundle: ResultsBundle, full: bool) -> dict[str, Any]:
    """JSON-ready bundle (or its summary form) with an `exported_at` timestamp."""
    record = bundle.model_dump(
        mode="json", exclude=None if full else _SUMMARY_EXCLUDE
    )
    record["exported_at"] = datetime.now(UTC).isoformat()
    return record


def _write_line(path: Path, line: str, append: bool) -> None:
    with path.open("a" if append else "w", encoding="utf-8") as f:
        f.write(line + "\n")


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
