"""ResultSink protocol — persists a run's log, bundle, and artifact manifest."""

from pathlib import Path
from typing import Protocol

from ybench.agent.domain.log import AgentLog
from ybench.evaluation.domain.bundle import ArtifactManifest, ResultsBundle


class ResultSink(Protocol):
    def write_agent_log(self, artifacts_dir: Path, log: AgentLog) -> Path: ...

    def write_bundle(self, artifacts_dir: Path, bundle: ResultsBundle) -> Path: ...

    def build_manifest(self, artifacts_dir: Path) -> ArtifactManifest: ...

    def export(self, artifacts_dir: Path, export_dir: Path, run_id: str) -> Path: ...
