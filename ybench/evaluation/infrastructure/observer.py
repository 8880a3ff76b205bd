"""StructlogEvaluationObserver — production observer that delegates to structlog."""

import structlog


class StructlogEvaluationObserver:
    """Logs evaluation domain events to structlog.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def evaluation_started(self, config_name: str, evaluator_names: list[str]) -> None:
        self._log.info(
            "evaluation.started",
            config_name=config_name,
            evaluator_names=evaluator_names,
        )

    def evaluation_workspace_ready(self, run_id: str, root_dir: str) -> None:
        self._log.info("evaluation.workspace_ready", run_id=run_id, root_dir=root_dir)

    def evaluation_agent_started(self, run_id: str, agent: str) -> None:
        self._log.info("evaluation.agent_started", run_id=run_id, agent=agent)

    def evaluation_agent_finished(
        self, run_id: str, agent: str, status: str, duration_ms: int
    ) -> None:
        log = self._log.info if status == "success" else self._log.warning
        log(
            "evaluation.agent_finished",
            run_id=run_id,
            agent=agent,
            status=status,
            duration_ms=duration_ms,
        )

    def evaluation_agent_log_fallback(self, run_id: str, reason: str) -> None:
        self._log.warning(
            "evaluation.agent_log_fallback", run_id=run_id, reason=reason
        )

    def evaluation_no_changes(self, run_id: str) -> None:
        self._log.warning("evaluation.no_changes", run_id=run_id)

    def evaluation_change_check_failed(self, run_id: str, reason: str) -> None:
        self._log.warning(
            "evaluation.change_check_failed", run_id=run_id, reason=reason
        )

    def evaluator_started(self, run_id: str, evaluator: str) -> None:
        self._log.info("evaluator.started", run_id=run_id, evaluator=evaluator)

    def evaluator_completed(
        self, run_id: str, evaluator: str, status: str, duration_ms: int
    ) -> None:
        self._log.info(
            "evaluator.completed",
            run_id=run_id,
            evaluator=evaluator,
            status=status,
            duration_ms=duration_ms,
        )

    def evaluator_not_found(self, run_id: str, evaluator: str) -> None:
        self._log.warning("evaluator.not_found", run_id=run_id, evaluator=evaluator)

    def evaluator_timed_out(
        self, run_id: str, evaluator: str, timeout_ms: int
    ) -> None:
        self._log.warning(
            "evaluator.timed_out",
            run_id=run_id,
            evaluator=evaluator,
            timeout_ms=timeout_ms,
        )

    def evaluator_crashed(self, run_id: str, evaluator: str, reason: str) -> None:
        self._log.error(
            "evaluator.crashed", run_id=run_id, evaluator=evaluator, reason=reason
        )

    def evaluation_results_persisted(self, run_id: str, path: str) -> None:
        self._log.info("evaluation.results_persisted", run_id=run_id, path=path)

    def evaluation_persist_failed(self, run_id: str, reason: str) -> None:
        self._log.error("evaluation.persist_failed", run_id=run_id, reason=reason)

    def post_evaluation_completed(
        self, run_id: str, hook: str, status: str, duration_ms: int
    ) -> None:
        log = self._log.warning if status == "failed" else self._log.info
        log(
            "post_evaluation.completed",
            run_id=run_id,
            hook=hook,
            status=status,
            duration_ms=duration_ms,
        )

    def post_evaluation_not_found(self, run_id: str, hook: str) -> None:
        self._log.warning("post_evaluation.not_found", run_id=run_id, hook=hook)

    def post_evaluation_crashed(self, run_id: str, hook: str, reason: str) -> None:
        self._log.error(
            "post_evaluation.crashed", run_id=run_id, hook=hook, reason=reason
        )

    def evaluation_results_exported(self, run_id: str, path: str) -> None:
        self._log.info("evaluation.results_exported", run_id=run_id, path=path)

    def evaluation_export_failed(self, run_id: str, reason: str) -> None:
        self._log.error("evaluation.export_failed", run_id=run_id, reason=reason)

    def evaluation_workspace_retained(self, run_id: str, root_dir: str) -> None:
        self._log.info(
            "evaluation.workspace_retained", run_id=run_id, root_dir=root_dir
        )

    def evaluation_completed(
        self, run_id: str, overall_status: str, elapsed_seconds: float
    ) -> None:
        self._log.info(
            "evaluation.completed",
            run_id=run_id,
            overall_status=overall_status,
            elapsed_seconds=round(elapsed_seconds, 2),
        )
