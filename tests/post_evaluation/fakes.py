"""Scripted post-evaluation hooks and registry for orchestrator tests."""

from collections.abc import Callable

from ybench.post_evaluation.domain.context import PostEvaluationContext
from ybench.post_evaluation.domain.hook import PostEvaluation
from ybench.post_evaluation.domain.result import (
    PostEvaluationResult,
    PostEvaluationStatus,
)


class FakePostEvaluation:
    """Hook that returns `status`, or raises `error`.

    Records each context and whether the bundle file existed when it ran.
    `on_execute` is called first, so a test can inspect state at hook time.
    """

    def __init__(
        self,
        name: str,
        status: PostEvaluationStatus = "success",
        error: Exception | None = None,
        preconditions: bool = True,
        on_execute: Callable[[], None] | None = None,
    ) -> None:
        self.name = name
        self.description = f"fake hook {name}"
        self._status = status
        self._error = error
        self._preconditions = preconditions
        self._on_execute = on_execute
        self.contexts: list[PostEvaluationContext] = []
        self.bundle_file_existed: list[bool] = []

    async def check_preconditions(self, context: PostEvaluationContext) -> bool:
        return self._preconditions

    async def execute(self, context: PostEvaluationContext) -> PostEvaluationResult:
        if self._on_execute is not None:
            self._on_execute()
        self.contexts.append(context)
        self.bundle_file_existed.append(
            context.bundle_path is not None and context.bundle_path.exists()
        )
        if self._error is not None:
            raise self._error
        return PostEvaluationResult.of(
            post_evaluator=self.name,
            status=self._status,
            message=f"{self.name} {self._status}",
        )


class FakePostEvaluationRegistry:
    def __init__(self, hooks: list[FakePostEvaluation]) -> None:
        self._hooks = {h.name: h for h in hooks}

    def resolve(self, name: str) -> PostEvaluation | None:
        return self._hooks.get(name)
