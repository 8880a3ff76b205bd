"""EvaluatorRegistry protocol — resolves configured evaluator names to Evaluators."""

from typing import Protocol

from ybench.evaluator.domain.evaluator import Evaluator


class EvaluatorRegistry(Protocol):
    def resolve(self, name: str) -> Evaluator | None: ...
