"""ExpectedDiffEvaluator — scores how closely the modified tree matches a reference tree."""

import asyncio
import json
import os
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ybench.evaluator.domain.context import EvaluationContext
from ybench.evaluator.domain.observer import EvaluatorObserver
from ybench.evaluator.domain.result import (
    EvaluationArtifact,
    EvaluationErrorDetail,
    EvaluationResult,
    EvaluationStatus,
)
from ybench.evaluator.infrastructure.artifacts import write_artifact
from ybench.evaluator.infrastructure.similarity import text_similarity

REPORT_FILENAME = "expected-diff-report.json"
DEFAULT_THRESHOLD = 0.80
_EXCLUDED_DIRS = frozenset({".git"})

type FileStatus = Literal["matched", "changed", "added", "removed"]


class ExpectedDiffConfig(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    threshold: float = Field(default=DEFAULT_THRESHOLD, ge=0.0, le=1.0)


class FileSimilarity(BaseModel, frozen=True):
    path: str
    similarity: float
    status: FileStatus


class SimilaritySummary(BaseModel, frozen=True):
    aggregate_similarity: float
    files_matched: int
    files_changed: int
    files_added: int
    files_removed: int


class ExpectedDiffEvaluator:
    """Compares every file of the modified tree with the expected reference tree.

    Files in both trees get a normalized edit-distance similarity. Files only
    in the modified tree are `added`; files only in the reference are
    `removed`. The aggregate is the mean similarity of comparable files minus
    the share of added and removed paths, clamped to [0, 1].
    """

    name = "expected-diff"
    description = (
        "Compares the agent's output against an expected reference branch and"
        " passes when aggregate file similarity reaches the configured threshold."
    )
    requires_expected_reference = True

    def __init__(self, observer: EvaluatorObserver) -> None:
        self._observer = observer

    async def check_preconditions(self, context: EvaluationContext) -> bool:
        return (
            context.expected_dir is not None
            and context.expected_dir.is_dir()
            and context.modified_dir.is_dir()
        )

    async def evaluate(self, context: EvaluationContext) -> EvaluationResult:
        start = time.monotonic()
        if not await self.check_preconditions(context) or context.expected_dir is None:
            return EvaluationResult.skipped(
                evaluator=self.name,
                message="Expected reference directory not available or not accessible",
                error=EvaluationErrorDetail(message="Expected reference not available"),
            )

        try:
            config = ExpectedDiffConfig.model_validate(context.config)
        except ValidationError as exc:
            return EvaluationResult.skipped(
                evaluator=self.name,
                message=f"Evaluation skipped: invalid configuration: {exc}",
                duration_ms=_elapsed_ms(start),
                error=EvaluationErrorDetail.from_exception(exc),
            )

        similarities, summary = await asyncio.to_thread(
            compare_trees, context.modified_dir, context.expected_dir
        )
        status: EvaluationStatus = (
            "passed" if summary.aggregate_similarity >= config.threshold else "failed"
        )

        artifacts: list[EvaluationArtifact] = []
        report = {
            "summary": summary.model_dump(),
            "file_details": [s.model_dump() for s in similarities],
            "timestamp": datetime.now(UTC).isoformat(),
        }
        artifact = await write_artifact(
            context=context,
            filename=REPORT_FILENAME,
            content=json.dumps(report, indent=2),
            artifact_type="diff-report",
            description="Detailed file-by-file similarity comparison",
            observer=self._observer,
        )
        if artifact is not None:
            artifacts.append(artifact)

        return EvaluationResult(
            evaluator=self.name,
            status=status,
            metrics={
                **summary.model_dump(),
                "file_similarities": [s.model_dump() for s in similarities],
            },
            message=_build_message(summary, config.threshold, status),
            duration_ms=_elapsed_ms(start),
            timestamp=datetime.now(UTC),
            assertions={"threshold": config.threshold},
            artifacts=artifacts,
        )


def list_files(root: Path) -> list[str]:
    """Relative POSIX paths of all regular files under root, skipping `.git`."""
    files: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _EXCLUDED_DIRS)
        for filename in filenames:
            full = Path(dirpath) / filename
            if full.is_file():
                files.append(full.relative_to(root).as_posix())
    return sorted(files)


def compare_trees(
    modified_dir: Path, expected_dir: Path
) -> tuple[list[FileSimilarity], SimilaritySummary]:
    """Per-file similarities and their aggregate for two directory trees."""
    modified_files = list_files(modified_dir)
    expected_files = list_files(expected_dir)
    expected_set = set(expected_files)
    modified_set = set(modified_files)

    similarities: list[FileSimilarity] = []
    for path in modified_files:
        if path in expected_set:
            similarities.append(
                _compare_file(path, modified_dir / path, expected_dir / path)
            )
        else:
            similarities.append(FileSimilarity(path=path, similarity=0.0, status="added"))
    for path in expected_files:
        if path not in modified_set:
            similarities.append(
                FileSimilarity(path=path, similarity=0.0, status="removed")
            )

    return similarities, _summarise(
        similarities, total_paths=len(modified_set | expected_set)
    )


def _compare_file(path: str, modified: Path, expected: Path) -> FileSimilarity:
    try:
        modified_bytes = modified.read_bytes()
        expected_bytes = expected.read_bytes()
    except OSError:
        return FileSimilarity(path=path, similarity=0.0, status="changed")

    if modified_bytes == expected_bytes:
        return FileSimilarity(path=path, similarity=1.0, status="matched")
    try:
        similarity = text_similarity(
            modified_bytes.decode("utf-8"), expected_bytes.decode("utf-8")
        )
    except UnicodeDecodeError:
        # Differing binary content.
        similarity = 0.0
    return FileSimilarity(path=path, similarity=similarity, status="changed")


def _summarise(
    similarities: list[FileSimilarity], total_paths: int
) -> SimilaritySummary:
    counts = {status: 0 for status in ("matched", "changed", "added", "removed")}
    for s in similarities:
        counts[s.status] += 1
    comparable = [s for s in similarities if s.status in ("matched", "changed")]

    if not comparable:
        aggregate = 1.0 if total_paths == 0 else 0.0
    else:
        mean = sum(s.similarity for s in comparable) / len(comparable)
        penalty = (counts["added"] + counts["removed"]) / total_paths
        aggregate = mean - penalty

    return SimilaritySummary(
        aggregate_similarity=max(0.0, min(1.0, aggregate)),
        files_matched=counts["matched"],
        files_changed=counts["changed"],
        files_added=counts["added"],
        files_removed=counts["removed"],
    )


def _build_message(
    summary: SimilaritySummary, threshold: float, status: EvaluationStatus
) -> str:
    parts = [
        f"Similarity: {summary.aggregate_similarity * 100:.1f}%"
        f" (threshold: {threshold * 100:.0f}%)",
        f"Files: {summary.files_matched} matched, {summary.files_changed} changed",
    ]
    if summary.files_added:
        parts.append(f"{summary.files_added} added")
    if summary.files_removed:
        parts.append(f"{summary.files_removed} removed")
    marker = "✓" if status == "passed" else "✗"
    return f"{marker} {' | '.join(parts)}"


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
