"""LockGuard — file-based mutual exclusion with process-liveness staleness checks."""

import os
import uuid
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from ybench.workspace.domain.lock import LockHandle, LockRecord
from ybench.workspace.domain.observer import WorkspaceObserver
from ybench.workspace.infrastructure.errors import LockedError

_ACQUIRE_ATTEMPTS = 2


class LockGuard:
    """Exclusive lock on a path, held by a live process.

    The lock file holds a JSON LockRecord. A record whose pid does not name a
    running process is stale and is reclaimed by the next acquirer. Age is
    never used as a staleness signal: a long-running holder keeps its lock.
    """

    def __init__(self, observer: WorkspaceObserver, pid: int | None = None) -> None:
        self._observer = observer
        self._pid = os.getpid() if pid is None else pid

    def acquire(self, path: Path, repo: str) -> LockHandle:
        """Take the lock at path on behalf of this process.

        Raises:
            LockedError: if a live process holds the lock, or if the lock was
                re-taken by someone else after a stale record was removed.
        """
        holder_pid: int | None = None
        for _ in range(_ACQUIRE_ATTEMPTS):
            record = LockRecord(pid=self._pid, timestamp=_now(), repo=repo)
            if _create_exclusive(path=path, record=record):
                self._observer.lock_acquired(path=str(path), pid=self._pid)
                return LockHandle(path=path, record=record)

            existing = read_lock_record(path)
            holder_pid = existing.pid if existing is not None else None
            if existing is not None and process_is_alive(existing.pid):
                raise LockedError(path=path, holder_pid=existing.pid)
            if existing is None and not path.exists():
                # Released between our create attempt and the read.
                continue

            self._observer.lock_reclaimed(path=str(path), stale_pid=holder_pid)
            if not _remove_if_unchanged(path=path, expected=existing):
                current = read_lock_record(path)
                raise LockedError(
                    path=path, holder_pid=current.pid if current is not None else None
                )

        raise LockedError(path=path, holder_pid=holder_pid)

    def persist(self, handle: LockHandle) -> LockHandle:
        """Rewrite the held lock's record with a fresh timestamp."""
        record = handle.record.model_copy(update={"timestamp": _now()})
        tmp = _temp_path(handle.path)
        tmp.write_text(record.model_dump_json(), encoding="utf-8")
        os.replace(tmp, handle.path)
        return LockHandle(path=handle.path, record=record)

    def release(self, handle: LockHandle) -> None:
        """Delete the lock file if it still holds handle's record.

        A lock that was reclaimed and re-taken by another process is left in
        place. Failures are reported to the observer, never raised.
        """
        current = read_lock_record(handle.path)
        if current is None and not handle.path.exists():
            return
        if current != handle.record:
            holder = current.pid if current is not None else None
            self._observer.lock_release_failed(
                path=str(handle.path), reason=f"lock is now held by pid {holder}"
            )
            return
        try:
            removed = _remove_if_unchanged(path=handle.path, expected=handle.record)
        except OSError as exc:
            self._observer.lock_release_failed(path=str(handle.path), reason=str(exc))
            return
        if not removed:
            self._observer.lock_release_failed(
                path=str(handle.path), reason="lock was re-taken during release"
            )

    def is_locked(self, path: Path) -> bool:
        record = read_lock_record(path)
        return record is not None and process_is_alive(record.pid)


def read_lock_record(path: Path) -> LockRecord | None:
    """Parse the lock file at path; None if it is missing or unreadable."""
    try:
        return LockRecord.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError):
        return None


def process_is_alive(pid: int) -> bool:
    """True if a process with this pid exists on the host."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, but owned by another user.
        return True
    return True


def _create_exclusive(path: Path, record: LockRecord) -> bool:
    """Atomically create path with record as content; False if path already exists.

    The record is written to a private temp file first and hard-linked into
    place, so a reader never observes a partially written lock.
    """
    tmp = _temp_path(path)
    tmp.write_text(record.model_dump_json(), encoding="utf-8")
    try:
        os.link(tmp, path)
        return True
    except FileExistsError:
        return False
    finally:
        tmp.unlink(missing_ok=True)


def _remove_if_unchanged(path: Path, expected: LockRecord | None) -> bool:
    """Delete the lock at path only if it still holds expected.

    The file is renamed aside before it is checked, so the record that is
    compared is the one that gets deleted. A different record is linked back
    into place and False is returned. A missing file counts as removed.
    """
    aside = _temp_path(path)
    try:
        os.rename(path, aside)
    except FileNotFoundError:
        return True
    try:
        if read_lock_record(aside) == expected:
            return True
        try:
            os.link(aside, path)
        except FileExistsError:
            # A third acquirer already holds the path.
            pass
        return False
    finally:
        aside.unlink(missing_ok=True)


def _temp_path(path: Path) -> Path:
    return path.with_name(f"{path.name}.{uuid.uuid4().hex}.tmp")


def _now() -> datetime:
    return datetime.now(UTC)
