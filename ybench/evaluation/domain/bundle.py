"""ResultsBundle — the single persisted record of one complete evaluation run."""

from collections.abc import Sequence
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from ybench.agent.domain.result import ExecutionStatus
from ybench.evaluator.domain.result import EvaluationResult

BUNDLE_VERSION = "1.0.0"

type OverallStatus = Literal["passed", "failed", "partial"]


class RunIdentity(BaseModel, frozen=True):
    """Snapshot of what was benchmarked, serialized as `test_case`."""

    name: str
    description: str = ""
    repo: str
    branch: str | None = None
    commit: str | None = None
    expected_branch: str | None = None
    config_hash: str


class ExecutionEnvironment(BaseModel, frozen=True):
    os: str
    arch: str
    python_version: str
    workspace_dir: str


class ExecutionSummary(BaseModel, frozen=True):
    started_at: datetime
    completed_at: datetime
    duration_ms: int = Field(ge=0)
    ybench_version: str
    environment: ExecutionEnvironment


class AgentSummary(BaseModel, frozen=True):
    type: str
    name: str
    status: ExecutionStatus
    exit_code: int | None
    duration_ms: int = Field(ge=0)
    log_path: str
    errors: list[str] = []


class BundleSummary(BaseModel, frozen=True):
    total_evaluators: int
    passed: int
    failed: int
    skipped: int
    overall_status: OverallStatus

    @classmethod
    def from_results(cls, results: Sequence[EvaluationResult]) -> "BundleSummary":
        """Count statuses; any failure fails the run, else any skip makes it partial."""
        passed = sum(1 for r in results if r.status == "passed")
        failed = sum(1 for r in results if r.status == "failed")
        skipped = sum(1 for r in results if r.status == "skipped")
        overall: OverallStatus
        if failed:
            overall = "failed"
        elif skipped:
            overall = "partial"
        else:
            overall = "passed"
        return cls(
            total_evaluators=len(results),
            passed=passed,
            failed=failed,
            skipped=skipped,
            overall_status=overall,
        )


class ArtifactManifest(BaseModel, frozen=True):
    """Artifact paths relative to the run's artifacts directory."""

    agent_log: str
    results: str
    evaluator_artifacts: list[str] = []


class ResultsBundle(BaseModel, frozen=True):
    """Terminal aggregate of one run; field names and statuses are a stable contract."""

    version: str = BUNDLE_VERSION
    run_id: str
    test_case: RunIdentity
    execution: ExecutionSummary
    agent: AgentSummary
    evaluators: list[EvaluationResult]
    summary: BundleSummary
    artifacts: ArtifactManifest
