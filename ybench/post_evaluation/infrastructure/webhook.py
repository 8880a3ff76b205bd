"""WebhookPostEvaluation — sends the results bundle to an HTTP endpoint."""

import asyncio
import time
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ybench.core.environment import ybench_version
from ybench.evaluator.domain.result import EvaluationErrorDetail
from ybench.post_evaluation.domain.context import PostEvaluationContext
from ybench.post_evaluation.domain.observer import PostEvaluationObserver
from ybench.post_evaluation.domain.result import PostEvaluationResult

_MAX_ATTEMPTS = 3


class WebhookSettings(BaseModel, frozen=True):
    model_config = ConfigDict(extra="forbid")

    url: str
    method: Literal["POST", "PUT", "PATCH"] = "POST"
    headers: dict[str, str] = {}
    include_artifacts: bool = False
    retry_on_failure: bool = True
    timeout_ms: int = Field(default=5000, gt=0)


class WebhookPostEvaluation:
    """Sends `{"results": bundle}` as JSON; a non-2xx response counts as a failed attempt.

    With `retry_on_failure` the request is tried up to three times, waiting
    `retry_delay_seconds * attempt` between tries.
    """

    name = "webhook"
    description = "Posts evaluation results to an HTTP webhook endpoint"

    def __init__(
        self,
        observer: PostEvaluationObserver,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_delay_seconds: float = 1.0,
    ) -> None:
        self._observer = observer
        self._transport = transport
        self._retry_delay_seconds = retry_delay_seconds

    async def check_preconditions(self, context: PostEvaluationContext) -> bool:
        return self._settings(context) is not None

    async def execute(self, context: PostEvaluationContext) -> PostEvaluationResult:
        start = time.monotonic()
        settings = self._settings(context)
        if settings is None:
            return PostEvaluationResult.of(
                post_evaluator=self.name,
                status="skipped",
                message="Invalid webhook configuration",
            )

        payload: dict[str, Any] = {"results": context.bundle.model_dump(mode="json")}
        if settings.include_artifacts:
            payload["artifacts_path"] = str(context.artifacts_dir)
        headers = {"User-Agent": f"ybench/{ybench_version()}", **settings.headers}
        max_attempts = _MAX_ATTEMPTS if settings.retry_on_failure else 1

        last_error: httpx.HTTPError | None = None
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(settings.timeout_ms / 1000),
            transport=self._transport,
        ) as client:
            for attempt in range(1, max_attempts + 1):
                try:
                    response = await client.request(
                        settings.method, settings.url, json=payload, headers=headers
                    )
                    response.raise_for_status()
                except httpx.HTTPError as exc:
                    last_error = exc
                    self._observer.webhook_attempt_failed(
                        url=settings.url,
                        attempt=attempt,
                        max_attempts=max_attempts,
                        reason=str(exc),
                    )
                    if attempt < max_attempts:
                        await asyncio.sleep(self._retry_delay_seconds * attempt)
                    continue
                return PostEvaluationResult.of(
                    post_evaluator=self.name,
                    status="success",
                    message=f"Successfully posted results to {settings.url}",
                    duration_ms=_elapsed_ms(start),
                    metadata={
                        "url": settings.url,
                        "method": settings.method,
                        "attempts": attempt,
                        "status_code": response.status_code,
                    },
                )

        return PostEvaluationResult.of(
            post_evaluator=self.name,
            status="failed",
            message=f"Failed to post results after {max_attempts} attempts",
            duration_ms=_elapsed_ms(start),
            metadata={"url": settings.url, "attempts": max_attempts},
            error=EvaluationErrorDetail.from_exception(last_error)
            if last_error is not None
            else None,
        )

    def _settings(self, context: PostEvaluationContext) -> WebhookSettings | None:
        try:
            settings = WebhookSettings.model_validate(context.config)
            url = httpx.URL(settings.url)
        except (ValidationError, httpx.InvalidURL) as exc:
            self._observer.post_evaluation_config_invalid(hook=self.name, reason=str(exc))
            return None
        if url.scheme not in ("http", "https") or not url.host:
            self._observer.post_evaluation_config_invalid(
                hook=self.name, reason=f"not an http(s) URL: {settings.url!r}"
            )
            return None
        return settings


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
