"""CompositeEvaluationObserver — fans out all events to a list of observers."""

from ybench.evaluation.domain.observer import EvaluationObserver


class CompositeEvaluationObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[EvaluationObserver]) -> None:
        self._observers = observers

    def evaluation_started(self, config_name: str, evaluator_names: list[str]) -> None:
        for obs in self._observers:
            obs.evaluation_started(
                config_name=config_name, evaluator_names=evaluator_names
            )

    def evaluation_workspace_ready(self, run_id: str, root_dir: str) -> None:
        for obs in self._observers:
            obs.evaluation_workspace_ready(run_id=run_id, root_dir=root_dir)

    def evaluation_agent_started(self, run_id: str, agent: str) -> None:
        for obs in self._observers:
            obs.evaluation_agent_started(run_id=run_id, agent=agent)

    def evaluation_agent_finished(
        self, run_id: str, agent: str, status: str, duration_ms: int
    ) -> None:
        for obs in self._observers:
            obs.evaluation_agent_finished(
                run_id=run_id, agent=agent, status=status, duration_ms=duration_ms
            )

    def evaluation_agent_log_fallback(self, run_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.evaluation_agent_log_fallback(run_id=run_id, reason=reason)

    def evaluation_no_changes(self, run_id: str) -> None:
        for obs in self._observers:
            obs.evaluation_no_changes(run_id=run_id)

    def evaluation_change_check_failed(self, run_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.evaluation_change_check_failed(run_id=run_id, reason=reason)

    def evaluator_started(self, run_id: str, evaluator: str) -> None:
        for obs in self._observers:
            obs.evaluator_started(run_id=run_id, evaluator=evaluator)

    def evaluator_completed(
        self, run_id: str, evaluator: str, status: str, duration_ms: int
    ) -> None:
        for obs in self._observers:
            obs.evaluator_completed(
                run_id=run_id,
                evaluator=evaluator,
                status=status,
                duration_ms=duration_ms,
            )

    def evaluator_not_found(self, run_id: str, evaluator: str) -> None:
        for obs in self._observers:
            obs.evaluator_not_found(run_id=run_id, evaluator=evaluator)

    def evaluator_timed_out(
        self, run_id: str, evaluator: str, timeout_ms: int
    ) -> None:
        for obs in self._observers:
            obs.evaluator_timed_out(
                run_id=run_id, evaluator=evaluator, timeout_ms=timeout_ms
            )

    def evaluator_crashed(self, run_id: str, evaluator: str, reason: str) -> None:
        for obs in self._observers:
            obs.evaluator_crashed(run_id=run_id, evaluator=evaluator, reason=reason)

    def evaluation_results_persisted(self, run_id: str, path: str) -> None:
        for obs in self._observers:
            obs.evaluation_results_persisted(run_id=run_id, path=path)

    def evaluation_persist_failed(self, run_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.evaluation_persist_failed(run_id=run_id, reason=reason)

    def post_evaluation_completed(
        self, run_id: str, hook: str, status: str, duration_ms: int
    ) -> None:
        for obs in self._observers:
            obs.post_evaluation_completed(
                run_id=run_id, hook=hook, status=status, duration_ms=duration_ms
            )

    def post_evaluation_not_found(self, run_id: str, hook: str) -> None:
        for obs in self._observers:
            obs.post_evaluation_not_found(run_id=run_id, hook=hook)

    def post_evaluation_crashed(self, run_id: str, hook: str, reason: str) -> None:
        for obs in self._observers:
            obs.post_evaluation_crashed(run_id=run_id, hook=hook, reason=reason)

    def evaluation_results_exported(self, run_id: str, path: str) -> None:
        for obs in self._observers:
            obs.evaluation_results_exported(run_id=run_id, path=path)

    def evaluation_export_failed(self, run_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.evaluation_export_failed(run_id=run_id, reason=reason)

    def evaluation_workspace_retained(self, run_id: str, root_dir: str) -> None:
        for obs in self._observers:
            obs.evaluation_workspace_retained(run_id=run_id, root_dir=root_dir)

    def evaluation_completed(
        self, run_id: str, overall_status: str, elapsed_seconds: float
    ) -> None:
        for obs in self._observers:
            obs.evaluation_completed(
                run_id=run_id,
                overall_status=overall_status,
                elapsed_seconds=elapsed_seconds,
            )
