"""Builders for PostEvaluationContext in hook tests."""

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ybench.evaluation.domain.bundle import (
    AgentSummary,
    ArtifactManifest,
    BundleSummary,
    ExecutionEnvironment,
    ExecutionSummary,
    ResultsBundle,
    RunIdentity,
)
from ybench.evaluator.domain.result import EvaluationErrorDetail, EvaluationResult
from ybench.post_evaluation.domain.context import PostEvaluationContext

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def make_bundle() -> ResultsBundle:
    results = [
        EvaluationResult(
            evaluator="git-diff",
            status="failed",
            metrics={"files_changed": 4},
            message="1 assertion violated",
            duration_ms=3,
            timestamp=_NOW,
            assertions={"max_files_changed": {"limit": 3, "actual": 4}},
        ),
        EvaluationResult.skipped(
            evaluator="mystery",
            message="Unknown evaluator: mystery",
            error=EvaluationErrorDetail(message="Evaluator 'mystery' not found"),
        ),
    ]
    return ResultsBundle(
        run_id="run-0001",
        test_case=RunIdentity(
            name="readme-task", repo="https://example.com/r.git", config_hash="f" * 16
        ),
        execution=ExecutionSummary(
            started_at=_NOW,
            completed_at=_NOW,
            duration_ms=10,
            ybench_version="0.1.0",
            environment=ExecutionEnvironment(
                os="linux", arch="x86_64", python_version="3.12", workspace_dir="/ws"
            ),
        ),
        agent=AgentSummary(
            type="command",
            name="my-agent",
            status="success",
            exit_code=0,
            duration_ms=5,
            log_path="agent-log.json",
            errors=["warning: slow start"],
        ),
        evaluators=results,
        summary=BundleSummary.from_results(results),
        artifacts=ArtifactManifest(agent_log="agent-log.json", results="results.json"),
    )


def make_context(
    tmp_path: Path, config: dict[str, Any], with_bundle_file: bool = True
) -> PostEvaluationContext:
    artifacts_dir = tmp_path / "ws" / "artifacts"
    artifacts_dir.mkdir(parents=True, exist_ok=True)
    bundle = make_bundle()
    bundle_path: Path | None = None
    if with_bundle_file:
        bundle_path = artifacts_dir / "results.json"
        bundle_path.write_text(bundle.model_dump_json(), encoding="utf-8")
    return PostEvaluationContext(
        bundle=bundle,
        bundle_path=bundle_path,
        artifacts_dir=artifacts_dir,
        workspace_dir=tmp_path / "ws",
        config=config,
    )
