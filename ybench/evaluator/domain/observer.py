"""EvaluatorObserver port — events emitted from inside individual evaluators."""

from typing import Protocol


class EvaluatorObserver(Protocol):
    def evaluator_artifact_write_failed(
        self, evaluator: str, path: str, reason: str
    ) -> None: ...

    def evaluator_judge_failed(self, evaluator: str, model: str, reason: str) -> None: ...
