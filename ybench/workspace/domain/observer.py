"""WorkspaceObserver port — domain events emitted while preparing and disposing workspaces."""

from typing import Protocol


class WorkspaceObserver(Protocol):
    """Observer port for workspace domain events.

    Implementations may log to structlog or record for tests.
    """

    def lock_acquired(self, path: str, pid: int) -> None: ...

    def lock_reclaimed(self, path: str, stale_pid: int | None) -> None: ...

    def lock_release_failed(self, path: str, reason: str) -> None: ...

    def clone_started(
        self, run_id: str, tree: str, repo: str, revision: str | None
    ) -> None: ...

    def workspace_created(
        self,
        run_id: str,
        root_dir: str,
        modified_commit: str,
        expected_commit: str | None,
    ) -> None: ...

    def workspace_creation_failed(self, run_id: str, code: str, reason: str) -> None: ...

    def workspace_cleaned(self, run_id: str) -> None: ...

    def workspace_cleanup_failed(self, run_id: str, path: str, reason: str) -> None: ...
