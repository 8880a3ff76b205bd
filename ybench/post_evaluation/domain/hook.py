"""PostEvaluation protocol — an action run on the saved results of a run."""

from typing import Protocol

from ybench.post_evaluation.domain.context import PostEvaluationContext
from ybench.post_evaluation.domain.result import PostEvaluationResult


class PostEvaluation(Protocol):
    """Exports or processes a finished bundle.

    `execute` reports failures as a `failed` result. Anything it raises is
    converted to a `failed` result by the orchestrator, and no hook outcome
    changes the bundle or the run's status.
    """

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    async def check_preconditions(self, context: PostEvaluationContext) -> bool: ...

    async def execute(self, context: PostEvaluationContext) -> PostEvaluationResult: ...
