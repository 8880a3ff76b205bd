"""Evaluator protocol — a pluggable scorer of one finished agent run."""

from typing import Protocol

from ybench.evaluator.domain.context import EvaluationContext
from ybench.evaluator.domain.result import EvaluationResult


class Evaluator(Protocol):
    """Inspects the workspace and agent log and returns a verdict.

    `evaluate` reports recoverable problems as a `skipped` result with an
    error detail instead of raising. Anything it does raise is converted to a
    `skipped` result by the orchestrator.
    """

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def requires_expected_reference(self) -> bool: ...

    async def check_preconditions(self, context: EvaluationContext) -> bool: ...

    async def evaluate(self, context: EvaluationContext) -> EvaluationResult: ...
