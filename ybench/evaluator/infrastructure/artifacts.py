"""Best-effort writing of per-evaluator artifact files."""

import asyncio
from pathlib import Path

from ybench.evaluator.domain.context import EvaluationContext
from ybench.evaluator.domain.observer import EvaluatorObserver
from ybench.evaluator.domain.result import EvaluationArtifact


async def write_artifact(
    context: EvaluationContext,
    filename: str,
    content: str,
    artifact_type: str,
    description: str,
    observer: EvaluatorObserver,
) -> EvaluationArtifact | None:
    """Write content under the evaluator's artifact directory.

    Returns None (after notifying the observer) if the file cannot be written;
    a lost artifact never changes the evaluator's verdict.
    """
    path = context.evaluator_artifacts_dir / filename
    try:
        await asyncio.to_thread(_write_text, path, content)
    except OSError as exc:
        observer.evaluator_artifact_write_failed(
            evaluator=context.evaluator_name, path=str(path), reason=str(exc)
        )
        return None
    return EvaluationArtifact(
        type=artifact_type,
        path=context.artifact_relpath(path),
        description=description,
    )


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
