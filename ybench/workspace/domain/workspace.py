"""Workspace value objects — directory layout and the resolved state of a run's checkouts."""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from ybench.workspace.domain.lock import LockHandle

MODIFIED_DIR_NAME = "src-modified"
EXPECTED_DIR_NAME = "src-expected"
ARTIFACTS_DIR_NAME = "artifacts"
EVALUATOR_ARTIFACTS_DIR_NAME = "evaluators"
LOCK_FILE_NAME = ".lock"


class WorkspacePaths(BaseModel, frozen=True):
    """Fixed directory layout under one run directory."""

    root_dir: Path
    modified_dir: Path
    expected_dir: Path | None
    artifacts_dir: Path
    evaluator_artifacts_dir: Path
    lock_path: Path

    @classmethod
    def for_run(cls, root_dir: Path, with_expected: bool) -> "WorkspacePaths":
        artifacts_dir = root_dir / ARTIFACTS_DIR_NAME
        return cls(
            root_dir=root_dir,
            modified_dir=root_dir / MODIFIED_DIR_NAME,
            expected_dir=root_dir / EXPECTED_DIR_NAME if with_expected else None,
            artifacts_dir=artifacts_dir,
            evaluator_artifacts_dir=artifacts_dir / EVALUATOR_ARTIFACTS_DIR_NAME,
            lock_path=root_dir / LOCK_FILE_NAME,
        )


class Workspace(BaseModel, frozen=True):
    """A prepared, locked run directory owned by exactly one orchestrator run."""

    run_id: str = Field(min_length=1)
    paths: WorkspacePaths
    lock: LockHandle
    repo: str
    branch: str | None
    commit: str | None
    expected_branch: str | None
    modified_commit: str
    expected_commit: str | None
    created_at: datetime


class WorkspaceInfo(BaseModel, frozen=True):
    """Point-in-time description of a workspace, for diagnostics and reports."""

    run_id: str
    root_dir: Path
    modified_dir: Path
    expected_dir: Path | None
    artifacts_dir: Path
    repo: str
    branch: str | None
    modified_commit: str
    expected_commit: str | None
    created_at: datetime
    exists: bool
    locked: bool
