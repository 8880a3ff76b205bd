"""Observer port for the evaluation domain — defines events in domain language."""

from typing import Protocol


class EvaluationObserver(Protocol):
    """Observer port emitting structured events during an evaluation run.

    Implementations may log to structlog, render progress, or record for tests.
    """

    def evaluation_started(
        self, config_name: str, evaluator_names: list[str]
    ) -> None: ...

    def evaluation_workspace_ready(self, run_id: str, root_dir: str) -> None: ...

    def evaluation_agent_started(self, run_id: str, agent: str) -> None: ...

    def evaluation_agent_finished(
        self, run_id: str, agent: str, status: str, duration_ms: int
    ) -> None: ...

    def evaluation_agent_log_fallback(self, run_id: str, reason: str) -> None: ...

    def evaluation_no_changes(self, run_id: str) -> None: ...

    def evaluation_change_check_failed(self, run_id: str, reason: str) -> None: ...

    def evaluator_started(self, run_id: str, evaluator: str) -> None: ...

    def evaluator_completed(
        self, run_id: str, evaluator: str, status: str, duration_ms: int
    ) -> None: ...

    def evaluator_not_found(self, run_id: str, evaluator: str) -> None: ...

    def evaluator_timed_out(
        self, run_id: str, evaluator: str, timeout_ms: int
    ) -> None: ...

    def evaluator_crashed(self, run_id: str, evaluator: str, reason: str) -> None: ...

    def evaluation_results_persisted(self, run_id: str, path: str) -> None: ...

    def evaluation_persist_failed(self, run_id: str, reason: str) -> None: ...

    def post_evaluation_completed(
        self, run_id: str, hook: str, status: str, duration_ms: int
    ) -> None: ...

    def post_evaluation_not_found(self, run_id: str, hook: str) -> None: ...

    def post_evaluation_crashed(self, run_id: str, hook: str, reason: str) -> None: ...

    def evaluation_results_exported(self, run_id: str, path: str) -> None: ...

    def evaluation_export_failed(self, run_id: str, reason: str) -> None: ...

    def evaluation_workspace_retained(self, run_id: str, root_dir: str) -> None: ...

    def evaluation_completed(
        self, run_id: str, overall_status: str, elapsed_seconds: float
    ) -> None: ...
