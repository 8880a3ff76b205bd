"""Error types raised by workspace infrastructure."""

from pathlib import Path
from typing import Literal

from ybench.core.errors import YBenchError

type WorkspaceErrorCode = Literal[
    "WORKSPACE_LOCKED",
    "CLONE_FAILED",
    "EXPECTED_BRANCH_NOT_FOUND",
    "CHECKOUT_FAILED",
    "INVALID_CONFIG",
]


class WorkspaceError(YBenchError):
    """Raised when a workspace cannot be prepared; `code` names the failing step."""

    def __init__(
        self, code: WorkspaceErrorCode, reason: str, retriable: bool = False
    ) -> None:
        self.code = code
        self.reason = reason
        super().__init__(
            f"Failed to create workspace [{code}]: {reason}", retriable=retriable
        )


class LockedError(WorkspaceError):
    """Raised when the workspace lock is held by a live process."""

    def __init__(self, path: Path, holder_pid: int | None) -> None:
        self.path = path
        self.holder_pid = holder_pid
        holder = f"process {holder_pid}" if holder_pid is not None else "another process"
        super().__init__(
            code="WORKSPACE_LOCKED",
            reason=f"{path} is locked by {holder}",
            retriable=True,
        )
