"""Structlog implementation of the WorkspaceObserver port."""

import structlog


class StructlogWorkspaceObserver:
    """Delegates workspace domain events to structlog.

    Satisfies the WorkspaceObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def lock_acquired(self, path: str, pid: int) -> None:
        self._log.debug("workspace.lock_acquired", path=path, pid=pid)

    def lock_reclaimed(self, path: str, stale_pid: int | None) -> None:
        self._log.warning("workspace.lock_reclaimed", path=path, stale_pid=stale_pid)

    def lock_release_failed(self, path: str, reason: str) -> None:
        self._log.warning("workspace.lock_release_failed", path=path, reason=reason)

    def clone_started(
        self, run_id: str, tree: str, repo: str, revision: str | None
    ) -> None:
        self._log.info(
            "workspace.clone_started",
            run_id=run_id,
            tree=tree,
            repo=repo,
            revision=revision,
        )

    def workspace_created(
        self,
        run_id: str,
        root_dir: str,
        modified_commit: str,
        expected_commit: str | None,
    ) -> None:
        self._log.info(
            "workspace.created",
            run_id=run_id,
            root_dir=root_dir,
            modified_commit=modified_commit,
            expected_commit=expected_commit,
        )

    def workspace_creation_failed(self, run_id: str, code: str, reason: str) -> None:
        self._log.error(
            "workspace.creation_failed", run_id=run_id, code=code, reason=reason
        )

    def workspace_cleaned(self, run_id: str) -> None:
        self._log.info("workspace.cleaned", run_id=run_id)

    def workspace_cleanup_failed(self, run_id: str, path: str, reason: str) -> None:
        self._log.warning(
            "workspace.cleanup_failed", run_id=run_id, path=path, reason=reason
        )
