"""Lock value objects — the persisted lock record and the handle returned to its holder."""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field


class LockRecord(BaseModel, frozen=True):
    """Content of a workspace lock file."""

    pid: int
    timestamp: datetime
    repo: str = Field(min_length=1)


class LockHandle(BaseModel, frozen=True):
    """Proof of a successful acquisition; passed back to release the lock."""

    path: Path
    record: LockRecord
