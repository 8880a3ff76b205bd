"""Tests for JsonResultSink and the JSONL run history."""

import json
from datetime import UTC, datetime
from pathlib import Path

from ybench.evaluation.domain.bundle import (
    AgentSummary,
    ArtifactManifest,
    BundleSummary,
    ExecutionEnvironment,
    ExecutionSummary,
    ResultsBundle,
    RunIdentity,
)
from ybench.evaluation.infrastructure.storage import (
    AGENT_LOG_FILENAME,
    RESULTS_FILENAME,
    JsonResultSink,
    append_history,
)
from ybench.evaluator.domain.result import EvaluationResult
from tests.evaluator.context_builder import make_agent_log

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _make_bundle(run_id: str = "abc123def456") -> ResultsBundle:
    results = [
        EvaluationResult(
            evaluator="git-diff",
            status="passed",
            message="ok",
            duration_ms=3,
            timestamp=_NOW,
        ),
        EvaluationResult.skipped(evaluator="mystery", message="Unknown evaluator"),
    ]
    return ResultsBundle(
        run_id=run_id,
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
            log_path=AGENT_LOG_FILENAME,
        ),
        evaluators=results,
        summary=BundleSummary.from_results(results),
        artifacts=ArtifactManifest(agent_log=AGENT_LOG_FILENAME, results=RESULTS_FILENAME),
    )


class TestJsonResultSink:
    """Files land at fixed names inside the artifacts directory."""

    def test_write_agent_log(self, tmp_path: Path) -> None:
        path = JsonResultSink().write_agent_log(tmp_path / "artifacts", make_agent_log())

        assert path == tmp_path / "artifacts" / AGENT_LOG_FILENAME
        data = json.loads(path.read_text())
        assert data["version"] == "1.0.0"
        assert data["agent"]["name"] == "test-agent"

    def test_write_bundle_round_trips(self, tmp_path: Path) -> None:
        bundle = _make_bundle()

        path = JsonResultSink().write_bundle(tmp_path, bundle)

        assert path.name == RESULTS_FILENAME
        assert path.read_text().endswith("}\n")
        assert ResultsBundle.model_validate_json(path.read_text()) == bundle

    def test_manifest_excludes_reserved_files(self, tmp_path: Path) -> None:
        (tmp_path / AGENT_LOG_FILENAME).write_text("{}")
        (tmp_path / RESULTS_FILENAME).write_text("{}")
        (tmp_path / "evaluators" / "git-diff").mkdir(parents=True)
        (tmp_path / "evaluators" / "git-diff" / "git-diff.patch").write_text("diff")
        (tmp_path / "evaluators" / "a.json").write_text("{}")

        manifest = JsonResultSink().build_manifest(tmp_path)

        assert manifest.agent_log == AGENT_LOG_FILENAME
        assert manifest.results == RESULTS_FILENAME
        assert manifest.evaluator_artifacts == [
            "evaluators/a.json",
            "evaluators/git-diff/git-diff.patch",
        ]

    def test_export_replaces_previous_copy(self, tmp_path: Path) -> None:
        artifacts = tmp_path / "artifacts"
        artifacts.mkdir()
        (artifacts / RESULTS_FILENAME).write_text("{}")
        stale = tmp_path / "export" / "run-1"
        stale.mkdir(parents=True)
        (stale / "stale.txt").write_text("old")

        dest = JsonResultSink().export(artifacts, tmp_path / "export", "run-1")

        assert dest == stale
        assert (dest / RESULTS_FILENAME).exists()
        assert not (dest / "stale.txt").exists()


class TestAppendHistory:
    """append_history() appends one JSON object per run."""

    def test_appends_one_line_per_call(self, tmp_path: Path) -> None:
        path = tmp_path / "out" / "history.jsonl"

        append_history(path, _make_bundle(run_id="run-a"))
        append_history(path, _make_bundle(run_id="run-b"))

        lines = path.read_text().splitlines()
        assert [json.loads(line)["run_id"] for line in lines] == ["run-a", "run-b"]

    def test_record_fields(self, tmp_path: Path) -> None:
        path = tmp_path / "history.jsonl"

        append_history(path, _make_bundle())

        record = json.loads(path.read_text())
        assert record["name"] == "readme-task"
        assert record["overall_status"] == "partial"
        assert record["agent_status"] == "success"
        assert record["evaluators"] == {"git-diff": "passed", "mystery": "skipped"}
        assert record["started_at"] == _NOW.isoformat()
