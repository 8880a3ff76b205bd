"""Structlog implementation of the EvaluatorObserver port."""

import structlog


class StructlogEvaluatorObserver:
    """Delegates evaluator events to structlog.

    Satisfies the EvaluatorObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def evaluator_artifact_write_failed(
        self, evaluator: str, path: str, reason: str
    ) -> None:
        self._log.warning(
            "evaluator.artifact_write_failed",
            evaluator=evaluator,
            path=path,
            reason=reason,
        )

    def evaluator_judge_failed(self, evaluator: str, model: str, reason: str) -> None:
        self._log.error(
            "evaluator.judge_failed", evaluator=evaluator, model=model, reason=reason
        )
