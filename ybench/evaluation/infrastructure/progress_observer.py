"""ProgressEvaluationObserver — renders one Rich status row per run stage to stderr."""

from __future__ import annotations

import sys

from rich.console import Console
from rich.progress import (
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

_AGENT_ROW = "agent"

# Rich markup style per terminal status.
_STATUS_STYLES: dict[str, str] = {
    "success": "green",
    "passed": "green",
    "failed": "red",
    "timeout": "yellow",
    "skipped": "yellow",
}


class ProgressEvaluationObserver:
    """Renders an agent row plus one row per configured evaluator on stderr.

    Rows show `pending`, `running`, then the terminal status. Colour is applied
    to status labels when stderr is a TTY.

    Only the agent and evaluator lifecycle events produce output; all other
    events are no-ops.

    Pass ``disabled=True`` to suppress all terminal output (useful in tests).

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._statuses: dict[str, str] = {}
        self._task_ids: dict[str, TaskID] = {}
        self._progress: Progress | None = None

    @property
    def statuses(self) -> dict[str, str]:
        """Current status label per row, keyed by row name."""
        return dict(self._statuses)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _status_markup(self, status: str) -> str:
        style = _STATUS_STYLES.get(status)
        if style is None or not sys.stderr.isatty():
            return status
        return f"[{style}]{status}[/{style}]"

    def _set_status(self, row: str, status: str, finished: bool = False) -> None:
        if row not in self._statuses:
            return
        self._statuses[row] = status
        if self._progress is None or row not in self._task_ids:
            return
        self._progress.update(
            self._task_ids[row],
            status=self._status_markup(status),
            completed=1 if finished else 0,
        )
        if finished:
            self._progress.stop_task(self._task_ids[row])

    # ------------------------------------------------------------------
    # Observer events
    # ------------------------------------------------------------------

    def evaluation_started(self, config_name: str, evaluator_names: list[str]) -> None:
        rows = [_AGENT_ROW, *evaluator_names]
        self._statuses = {row: "pending" for row in rows}
        self._task_ids = {}
        self._progress = None

        if self._disabled:
            return

        pad_width = max(len(row) for row in rows)
        self._progress = Progress(
            SpinnerColumn(finished_text="•"),
            TextColumn("{task.description}"),
            TextColumn("{task.fields[status]}"),
            TimeElapsedColumn(),
            console=Console(stderr=True),
            refresh_per_second=10,
            transient=False,
        )
        for row in rows:
            self._task_ids[row] = self._progress.add_task(
                description=f"{row:<{pad_width}}",
                total=1,
                status="pending",
                start=False,
            )
        self._progress.start()

    def evaluation_workspace_ready(self, run_id: str, root_dir: str) -> None:
        pass

    def evaluation_agent_started(self, run_id: str, agent: str) -> None:
        if self._progress is not None and _AGENT_ROW in self._task_ids:
            self._progress.start_task(self._task_ids[_AGENT_ROW])
        self._set_status(_AGENT_ROW, "running")

    def evaluation_agent_finished(
        self, run_id: str, agent: str, status: str, duration_ms: int
    ) -> None:
        self._set_status(_AGENT_ROW, status, finished=True)

    def evaluation_agent_log_fallback(self, run_id: str, reason: str) -> None:
        pass

    def evaluation_no_changes(self, run_id: str) -> None:
        for row in self._statuses:
            if row != _AGENT_ROW:
                self._set_status(row, "skipped", finished=True)

    def evaluation_change_check_failed(self, run_id: str, reason: str) -> None:
        pass

    def evaluator_started(self, run_id: str, evaluator: str) -> None:
        if self._progress is not None and evaluator in self._task_ids:
            self._progress.start_task(self._task_ids[evaluator])
        self._set_status(evaluator, "running")

    def evaluator_completed(
        self, run_id: str, evaluator: str, status: str, duration_ms: int
    ) -> None:
        self._set_status(evaluator, status, finished=True)

    def evaluator_not_found(self, run_id: str, evaluator: str) -> None:
        self._set_status(evaluator, "skipped", finished=True)

    def evaluator_timed_out(
        self, run_id: str, evaluator: str, timeout_ms: int
    ) -> None:
        pass

    def evaluator_crashed(self, run_id: str, evaluator: str, reason: str) -> None:
        pass

    def evaluation_results_persisted(self, run_id: str, path: str) -> None:
        pass

    def evaluation_persist_failed(self, run_id: str, reason: str) -> None:
        pass

    def post_evaluation_completed(
        self, run_id: str, hook: str, status: str, duration_ms: int
    ) -> None:
        pass

    def post_evaluation_not_found(self, run_id: str, hook: str) -> None:
        pass

    def post_evaluation_crashed(self, run_id: str, hook: str, reason: str) -> None:
        pass

    def evaluation_results_exported(self, run_id: str, path: str) -> None:
        pass

    def evaluation_export_failed(self, run_id: str, reason: str) -> None:
        pass

    def evaluation_workspace_retained(self, run_id: str, root_dir: str) -> None:
        pass

    def evaluation_completed(
        self, run_id: str, overall_status: str, elapsed_seconds: float
    ) -> None:
        self.close()

    def close(self) -> None:
        """Stop rendering; safe when the run aborted before completing."""
        if self._progress is not None:
            self._progress.stop()
        self._task_ids = {}
        self._progress = None
