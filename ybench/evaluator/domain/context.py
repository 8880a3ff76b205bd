"""EvaluationContext — the read-only view of a finished agent run handed to evaluators."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel

from ybench.agent.domain.log import AgentLog
from ybench.config.domain.run import RunConfig


class EvaluationContext(BaseModel, frozen=True):
    """Shared, immutable inputs for every evaluator of one run.

    The orchestrator builds one context per run and derives a per-evaluator
    view with `for_evaluator`, which only swaps in that evaluator's config
    slice and artifact directory. Evaluators must treat the workspace trees
    as read-only.
    """

    modified_dir: Path
    expected_dir: Path | None
    artifacts_dir: Path
    evaluator_artifacts_dir: Path
    agent_log: AgentLog
    run_config: RunConfig
    evaluator_name: str = ""
    config: dict[str, Any] = {}

    def for_evaluator(
        self, name: str, config: dict[str, Any], artifacts_subdir: str
    ) -> "EvaluationContext":
        return self.model_copy(
            update={
                "evaluator_name": name,
                "config": config,
                "evaluator_artifacts_dir": self.artifacts_dir
                / "evaluators"
                / artifacts_subdir,
            }
        )

    def artifact_relpath(self, path: Path) -> str:
        """Path of an evaluator artifact relative to the artifacts directory."""
        return path.relative_to(self.artifacts_dir).as_posix()
