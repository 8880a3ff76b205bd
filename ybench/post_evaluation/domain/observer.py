"""PostEvaluationObserver port — events emitted from inside individual hooks."""

from typing import Protocol


class PostEvaluationObserver(Protocol):
    def post_evaluation_config_invalid(self, hook: str, reason: str) -> None: ...

    def webhook_attempt_failed(
        self, url: str, attempt: int, max_attempts: int, reason: str
    ) -> None: ...
