"""PostEvaluationContext — what a hook sees of a finished, persisted run."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel

from ybench.evaluation.domain.bundle import ResultsBundle


class PostEvaluationContext(BaseModel, frozen=True):
    """Inputs for one hook.

    `bundle_path` is None when the bundle could not be written to the
    artifacts directory; hooks still receive the in-memory bundle.
    """

    bundle: ResultsBundle
    bundle_path: Path | None
    artifacts_dir: Path
    workspace_dir: Path
    config: dict[str, Any] = {}
