"""Structlog implementation of the PostEvaluationObserver port."""

import structlog


class StructlogPostEvaluationObserver:
    """Delegates hook events to structlog.

    Satisfies the PostEvaluationObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def post_evaluation_config_invalid(self, hook: str, reason: str) -> None:
        self._log.warning("post_evaluation.config_invalid", hook=hook, reason=reason)

    def webhook_attempt_failed(
        self, url: str, attempt: int, max_attempts: int, reason: str
    ) -> None:
        self._log.warning(
            "post_evaluation.webhook_attempt_failed",
            url=url,
            attempt=attempt,
            max_attempts=max_attempts,
            reason=reason,
        )
