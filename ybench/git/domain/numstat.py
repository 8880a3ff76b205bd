"""Per-file line counts reported by `git diff --numstat`."""

from pydantic import BaseModel, Field


class FileNumstat(BaseModel, frozen=True):
    """Inserted/deleted line counts for one path. Binary files count as zero."""

    path: str = Field(min_length=1)
    additions: int = Field(ge=0)
    deletions: int = Field(ge=0)
    binary: bool = False

    @property
    def changes(self) -> int:
        return self.additions + self.deletions
