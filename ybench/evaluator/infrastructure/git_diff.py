"""GitDiffEvaluator — measures the size and spread of the agent's changes."""

import asyncio
import time
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from ybench.core.errors import YBenchError
from ybench.evaluator.domain.context import EvaluationContext
from ybench.evaluator.domain.observer import EvaluatorObserver
from ybench.evaluator.domain.result import (
    EvaluationArtifact,
    EvaluationErrorDetail,
    EvaluationResult,
    EvaluationStatus,
)
from ybench.evaluator.infrastructure.artifacts import write_artifact
from ybench.evaluator.infrastructure.similarity import change_entropy
from ybench.git.domain.numstat import FileNumstat
from ybench.git.infrastructure.client import GitClient

PATCH_FILENAME = "git-diff.patch"


class GitDiffAssertions(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    max_files_changed: int | None = None
    max_lines_added: int | None = None
    max_lines_removed: int | None = None
    max_total_changes: int | None = None
    min_change_entropy: float | None = None
    max_change_entropy: float | None = None


class GitDiffConfig(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    base_commit: str = "HEAD"
    assertions: GitDiffAssertions | None = None


class GitDiffEvaluator:
    """Counts changed files and lines against a base revision and scores their spread.

    Compares the working tree (staged, unstaged, and untracked files) with
    `base_commit`. Change entropy is the Shannon entropy of changed lines per
    file. Without assertions the evaluator is purely descriptive and always
    passes; with assertions it fails iff any threshold is violated.
    """

    name = "git-diff"
    description = (
        "Measures the scope of changes: files modified, lines added/removed, and"
        " how changes are distributed. Supports max_files_changed, max_lines_added,"
        " max_lines_removed, max_total_changes, and min/max_change_entropy assertions."
    )
    requires_expected_reference = False

    def __init__(
        self, observer: EvaluatorObserver, git: GitClient | None = None
    ) -> None:
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
            config = GitDiffConfig.model_validate(context.config)
        except ValidationError as exc:
            return _skipped(self.name, start, f"invalid configuration: {exc}", exc)

        git = (
            self._git
            if self._git is not None
            else GitClient(context.run_config.git_timeout_ms)
        )
        repo_dir = context.modified_dir
        try:
            tracked = await git.diff_numstat(repo_dir, config.base_commit)
            untracked_paths = await git.untracked_files(repo_dir)
            untracked = await asyncio.to_thread(
                _count_untracked, repo_dir, untracked_paths
            )
            patch = await git.working_tree_patch(repo_dir, config.base_commit)
            current_commit = await git.rev_parse(repo_dir)
        except (YBenchError, OSError) as exc:
            return _skipped(self.name, start, str(exc), exc)

        files = sorted([*tracked, *untracked], key=lambda f: f.path)
        lines_added = sum(f.additions for f in files)
        lines_removed = sum(f.deletions for f in files)
        entropy = change_entropy([f.changes for f in files])
        violations = _check_assertions(
            files_changed=len(files),
            lines_added=lines_added,
            lines_removed=lines_removed,
            entropy=entropy,
            assertions=config.assertions,
        )
        status: EvaluationStatus = "failed" if violations else "passed"

        artifacts: list[EvaluationArtifact] = []
        if patch.strip():
            artifact = await write_artifact(
                context=context,
                filename=PATCH_FILENAME,
                content=patch,
                artifact_type="diff",
                description="Git diff patch showing all changes",
                observer=self._observer,
            )
            if artifact is not None:
                artifacts.append(artifact)

        summary = f"{len(files)} changed files (+{lines_added}/-{lines_removed} lines)"
        message = (
            f"✓ {summary}"
            if status == "passed"
            else f"✗ {summary} | Violations: {'; '.join(violations)}"
        )
        return EvaluationResult(
            evaluator=self.name,
            status=status,
            metrics={
                "files_changed": len(files),
                "lines_added": lines_added,
                "lines_removed": lines_removed,
                "total_changes": lines_added + lines_removed,
                "change_entropy": entropy,
                "changed_files": [
                    {
                        "path": f.path,
                        "additions": f.additions,
                        "deletions": f.deletions,
                        "changes": f.changes,
                    }
                    for f in files
                ],
                "base_commit": config.base_commit,
                "current_commit": current_commit,
                "violations": violations,
            },
            message=message,
            duration_ms=_elapsed_ms(start),
            timestamp=datetime.now(UTC),
            assertions=(
                config.assertions.model_dump()
                if config.assertions is not None
                else None
            ),
            artifacts=artifacts,
        )


def _check_assertions(
    files_changed: int,
    lines_added: int,
    lines_removed: int,
    entropy: float,
    assertions: GitDiffAssertions | None,
) -> list[str]:
    if assertions is None:
        return []
    violations: list[str] = []
    total = lines_added + lines_removed
    limits = [
        ("files_changed", files_changed, assertions.max_files_changed),
        ("lines_added", lines_added, assertions.max_lines_added),
        ("lines_removed", lines_removed, assertions.max_lines_removed),
        ("total_changes", total, assertions.max_total_changes),
    ]
    for metric, value, limit in limits:
        if limit is not None and value > limit:
            violations.append(f"{metric} ({value}) exceeds max_{metric} ({limit})")
    min_entropy = assertions.min_change_entropy
    max_entropy = assertions.max_change_entropy
    if min_entropy is not None and entropy < min_entropy:
        violations.append(
            f"change_entropy ({entropy:.2f}) below min_change_entropy"
            f" ({min_entropy})"
        )
    if max_entropy is not None and entropy > max_entropy:
        violations.append(
            f"change_entropy ({entropy:.2f}) exceeds max_change_entropy"
            f" ({max_entropy})"
        )
    return violations


def _count_untracked(repo_dir: Path, paths: list[str]) -> list[FileNumstat]:
    """Line counts for new, untracked files: every line is an addition."""
    entries: list[FileNumstat] = []
    for path in paths:
        try:
            data = (repo_dir / path).read_bytes()
        except OSError:
            # Unreadable entries (e.g. a symlink to a directory) count as binary.
            data = b"\0"
        binary = b"\0" in data
        lines = 0
        if not binary and data:
            lines = data.count(b"\n") + (0 if data.endswith(b"\n") else 1)
        entries.append(
            FileNumstat(path=path, additions=lines, deletions=0, binary=binary)
        )
    return entries


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
