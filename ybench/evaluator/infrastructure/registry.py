"""Built-in evaluator registry."""

from collections.abc import Callable

from ybench.evaluator.domain.evaluator import Evaluator
from ybench.evaluator.domain.observer import EvaluatorObserver
from ybench.evaluator.infrastructure.agentic_judge import AgenticJudgeEvaluator
from ybench.evaluator.infrastructure.expected_diff import ExpectedDiffEvaluator
from ybench.evaluator.infrastructure.git_diff import GitDiffEvaluator

AGENTIC_JUDGE = "agentic-judge"
_JUDGE_PREFIXES = (f"{AGENTIC_JUDGE}-", f"{AGENTIC_JUDGE}:")

type EvaluatorBuilder = Callable[[EvaluatorObserver], Evaluator]

_BUILDERS: dict[str, EvaluatorBuilder] = {
    "git-diff": GitDiffEvaluator,
    "expected-diff": ExpectedDiffEvaluator,
    AGENTIC_JUDGE: lambda observer: AgenticJudgeEvaluator(AGENTIC_JUDGE, observer),
}


class BuiltinEvaluatorRegistry:
    """Resolves the built-in evaluators by name.

    Custom judge instances are addressed as `agentic-judge-<label>` or
    `agentic-judge:<label>` and keep that full name in their results.

    Satisfies the EvaluatorRegistry protocol structurally.
    """

    def __init__(self, observer: EvaluatorObserver) -> None:
        self._observer = observer

    def resolve(self, name: str) -> Evaluator | None:
        builder = _BUILDERS.get(name)
        if builder is not None:
            return builder(self._observer)
        if name.startswith(_JUDGE_PREFIXES) and len(name) > len(AGENTIC_JUDGE) + 1:
            return AgenticJudgeEvaluator(name, self._observer)
        return None

    def names(self) -> list[str]:
        return sorted(_BUILDERS)
