"""PostEvaluationRegistry protocol — resolves configured hook names."""

from typing import Protocol

from ybench.post_evaluation.domain.hook import PostEvaluation


class PostEvaluationRegistry(Protocol):
    def resolve(self, name: str) -> PostEvaluation | None: ...
