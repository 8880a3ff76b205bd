"""Built-in post-evaluation hook registry."""

from collections.abc import Callable

from ybench.post_evaluation.domain.hook import PostEvaluation
from ybench.post_evaluation.domain.observer import PostEvaluationObserver
from ybench.post_evaluation.infrastructure.database import DatabasePostEvaluation
from ybench.post_evaluation.infrastructure.script import ScriptPostEvaluation
from ybench.post_evaluation.infrastructure.webhook import WebhookPostEvaluation

type PostEvaluationBuilder = Callable[[PostEvaluationObserver], PostEvaluation]

_BUILDERS: dict[str, PostEvaluationBuilder] = {
    "webhook": WebhookPostEvaluation,
    "database": DatabasePostEvaluation,
    "script": ScriptPostEvaluation,
}


class BuiltinPostEvaluationRegistry:
    """Resolves the built-in hooks by name.

    Satisfies the PostEvaluationRegistry protocol structurally.
    """

    def __init__(self, observer: PostEvaluationObserver) -> None:
        self._observer = observer

    def resolve(self, name: str) -> PostEvaluation | None:
        builder = _BUILDERS.get(name)
        return builder(self._observer) if builder is not None else None

    def names(self) -> list[str]:
        return sorted(_BUILDERS)
