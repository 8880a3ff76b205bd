"""WorkspaceManager — prepares, describes, and disposes of per-run git workspaces."""

import asyncio
import shutil
from datetime import UTC, datetime
from pathlib import Path

from ybench.config.domain.run import RunConfig
from ybench.core.errors import YBenchError
from ybench.git.infrastructure.client import GitClient
from ybench.workspace.domain.lock import LockHandle
from ybench.workspace.domain.observer import WorkspaceObserver
from ybench.workspace.domain.workspace import Workspace, WorkspaceInfo, WorkspacePaths
from ybench.workspace.infrastructure.errors import LockedError, WorkspaceError
from ybench.workspace.infrastructure.lock import LockGuard
from ybench.workspace.infrastructure.naming import allocate_run_dir

DEFAULT_WORKSPACE_ROOT = Path(".ybench-workspace")


class WorkspaceManager:
    """Builds isolated, lock-protected checkouts for one run and tears them down.

    Only `create_workspace` raises. Cleanup is best-effort: every failure is
    reported to the observer and swallowed so that it cannot mask the outcome
    of the run that owned the workspace.
    """

    def __init__(
        self,
        root: Path,
        observer: WorkspaceObserver,
        lock_guard: LockGuard | None = None,
        git: GitClient | None = None,
    ) -> None:
        self._root = root
        self._observer = observer
        self._lock_guard = lock_guard if lock_guard is not None else LockGuard(observer)
        self._git = git

    async def create_workspace(self, config: RunConfig) -> Workspace:
        """Allocate a run directory, lock it, and clone the configured trees.

        Raises:
            LockedError: WORKSPACE_LOCKED, the run directory is held by a live process.
            WorkspaceError: INVALID_CONFIG, CLONE_FAILED, CHECKOUT_FAILED, or
                EXPECTED_BRANCH_NOT_FOUND. The lock is released and the run
                directory removed before raising.
        """
        git = self._git if self._git is not None else GitClient(config.git_timeout_ms)
        root = config.workspace_dir if config.workspace_dir is not None else self._root
        created_at = datetime.now(UTC)

        try:
            run_id, run_dir = allocate_run_dir(
                root=root,
                run_id=config.run_id,
                name=config.workspace_name or config.name,
                now=created_at,
            )
        except OSError as exc:
            raise WorkspaceError(
                code="INVALID_CONFIG",
                reason=f"cannot create workspace root {root}: {exc}",
            ) from exc

        paths = WorkspacePaths.for_run(
            root_dir=run_dir, with_expected=config.expected is not None
        )
        try:
            lock = self._lock_guard.acquire(paths.lock_path, repo=config.repo)
        except LockedError as exc:
            # The directory belongs to the live holder; leave it alone.
            self._observer.workspace_creation_failed(
                run_id=run_id, code=exc.code, reason=exc.reason
            )
            raise

        try:
            _prepare_directories(paths=paths)
            modified_commit = await self._clone_modified(
                git=git, run_id=run_id, config=config, paths=paths
            )
            expected_commit = await self._clone_expected(
                git=git, run_id=run_id, config=config, paths=paths
            )
            lock = self._lock_guard.persist(lock)
        except WorkspaceError as exc:
            self._observer.workspace_creation_failed(
                run_id=run_id, code=exc.code, reason=exc.reason
            )
            await self._teardown(run_id=run_id, lock=lock, root_dir=run_dir)
            raise
        except BaseException:
            await self._teardown(run_id=run_id, lock=lock, root_dir=run_dir)
            raise

        workspace = Workspace(
            run_id=run_id,
            paths=paths,
            lock=lock,
            repo=config.repo,
            branch=config.branch,
            commit=config.commit,
            expected_branch=config.expected,
            modified_commit=modified_commit,
            expected_commit=expected_commit,
            created_at=created_at,
        )
        self._observer.workspace_created(
            run_id=run_id,
            root_dir=str(run_dir),
            modified_commit=modified_commit,
            expected_commit=expected_commit,
        )
        return workspace

    async def cleanup(self, workspace: Workspace) -> None:
        """Release the lock, then remove the run directory. Never raises; safe to repeat."""
        await self._teardown(
            run_id=workspace.run_id,
            lock=workspace.lock,
            root_dir=workspace.paths.root_dir,
        )

    def get_info(self, workspace: Workspace) -> WorkspaceInfo:
        paths = workspace.paths
        return WorkspaceInfo(
            run_id=workspace.run_id,
            root_dir=paths.root_dir,
            modified_dir=paths.modified_dir,
            expected_dir=paths.expected_dir,
            artifacts_dir=paths.artifacts_dir,
            repo=workspace.repo,
            branch=workspace.branch,
            modified_commit=workspace.modified_commit,
            expected_commit=workspace.expected_commit,
            created_at=workspace.created_at,
            exists=paths.root_dir.exists(),
            locked=self._lock_guard.is_locked(paths.lock_path),
        )

    async def _clone_modified(
        self, git: GitClient, run_id: str, config: RunConfig, paths: WorkspacePaths
    ) -> str:
        """Clone the tree the agent will edit and return its HEAD commit.

        A named branch alone is cloned shallow. A commit needs full history
        because a shallow clone cannot reliably reach an arbitrary commit.
        """
        self._observer.clone_started(
            run_id=run_id,
            tree="modified",
            repo=config.repo,
            revision=config.commit or config.branch,
        )
        shallow = config.commit is None
        try:
            await git.clone(
                url=config.repo,
                dest=paths.modified_dir,
                branch=config.branch,
                depth=1 if shallow else None,
                single_branch=config.branch is not None,
            )
        except YBenchError as exc:
            raise WorkspaceError(code="CLONE_FAILED", reason=str(exc)) from exc

        try:
            if config.commit is not None:
                await git.checkout(paths.modified_dir, config.commit)
            return await git.rev_parse(paths.modified_dir)
        except YBenchError as exc:
            raise WorkspaceError(code="CHECKOUT_FAILED", reason=str(exc)) from exc

    async def _clone_expected(
        self, git: GitClient, run_id: str, config: RunConfig, paths: WorkspacePaths
    ) -> str | None:
        if config.expected is None or paths.expected_dir is None:
            return None
        self._observer.clone_started(
            run_id=run_id,
            tree="expected",
            repo=config.repo,
            revision=config.expected,
        )
        try:
            await git.clone(
                url=config.repo,
                dest=paths.expected_dir,
                branch=config.expected,
                depth=1,
                single_branch=True,
            )
            return await git.rev_parse(paths.expected_dir)
        except YBenchError as exc:
            raise WorkspaceError(
                code="EXPECTED_BRANCH_NOT_FOUND",
                reason=f"expected reference '{config.expected}': {exc}",
            ) from exc

    async def _teardown(self, run_id: str, lock: LockHandle, root_dir: Path) -> None:
        self._lock_guard.release(lock)
        try:
            await asyncio.to_thread(shutil.rmtree, root_dir)
        except FileNotFoundError:
            pass
        except OSError as exc:
            self._observer.workspace_cleanup_failed(
                run_id=run_id, path=str(root_dir), reason=str(exc)
            )
            return
        self._observer.workspace_cleaned(run_id=run_id)


def _prepare_directories(paths: WorkspacePaths) -> None:
    """Create the artifacts tree, clearing trees left behind by a reclaimed run."""
    leftovers = [paths.modified_dir, paths.artifacts_dir]
    if paths.expected_dir is not None:
        leftovers.append(paths.expected_dir)
    try:
        for leftover in leftovers:
            if leftover.exists():
                shutil.rmtree(leftover)
        paths.evaluator_artifacts_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WorkspaceError(
            code="INVALID_CONFIG",
            reason=f"cannot prepare {paths.root_dir}: {exc}",
        ) from exc
