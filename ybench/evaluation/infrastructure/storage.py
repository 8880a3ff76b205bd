"""JSON result sink and run history for the artifacts directory layout."""

import json
import shutil
from pathlib import Path

from ybench.agent.domain.log import AgentLog
from ybench.evaluation.domain.bundle import ArtifactManifest, ResultsBundle

AGENT_LOG_FILENAME = "agent-log.json"
RESULTS_FILENAME = "results.json"
HISTORY_FILENAME = "history.jsonl"


class JsonResultSink:
    """Writes pretty-printed JSON into a run's artifacts directory.

    Satisfies the ResultSink protocol structurally.
    """

    def write_agent_log(self, artifacts_dir: Path, log: AgentLog) -> Path:
        path = artifacts_dir / AGENT_LOG_FILENAME
        _write_json(path, log.model_dump_json(indent=2))
        return path

    def write_bundle(self, artifacts_dir: Path, bundle: ResultsBundle) -> Path:
        path = artifacts_dir / RESULTS_FILENAME
        _write_json(path, bundle.model_dump_json(indent=2))
        return path

    def build_manifest(self, artifacts_dir: Path) -> ArtifactManifest:
        """Sorted relative paths of every artifact file except the log and results."""
        reserved = {AGENT_LOG_FILENAME, RESULTS_FILENAME}
        evaluator_artifacts: list[str] = []
        for path in artifacts_dir.rglob("*"):
            relative = path.relative_to(artifacts_dir).as_posix()
            if path.is_file() and relative not in reserved:
                evaluator_artifacts.append(relative)
        evaluator_artifacts.sort()
        return ArtifactManifest(
            agent_log=AGENT_LOG_FILENAME,
            results=RESULTS_FILENAME,
            evaluator_artifacts=evaluator_artifacts,
        )

    def export(self, artifacts_dir: Path, export_dir: Path, run_id: str) -> Path:
        """Copy the artifacts directory to `<export_dir>/<run_id>/`, replacing any old copy."""
        dest = export_dir / run_id
        if dest.exists():
            shutil.rmtree(dest)
        shutil.copytree(artifacts_dir, dest)
        return dest


def append_history(path: Path, bundle: ResultsBundle) -> None:
    """Append one summary line for bundle to the JSONL history file at path."""
    record = {
        "run_id": bundle.run_id,
        "name": bundle.test_case.name,
        "started_at": bundle.execution.started_at.isoformat(),
        "completed_at": bundle.execution.completed_at.isoformat(),
        "overall_status": bundle.summary.overall_status,
        "agent_status": bundle.agent.status,
        "evaluators": {r.evaluator: r.status for r in bundle.evaluators},
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(record) + "\n")


def _write_json(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content + "\n", encoding="utf-8")
