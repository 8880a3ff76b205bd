"""Run directory naming — sanitised, human-readable, unique per workspace root."""

import re
from datetime import datetime
from pathlib import Path

_MAX_NAME_LENGTH = 100
_FALLBACK_NAME = "workspace"
_DEFAULT_PREFIX = "run"

_WHITESPACE = re.compile(r"\s+")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_LEADING_NON_ALNUM = re.compile(r"^[^A-Za-z0-9]+")


def sanitize_workspace_name(name: str) -> str:
    """Reduce name to [A-Za-z0-9._-], starting alphanumeric, at most 100 characters."""
    cleaned = _WHITESPACE.sub("-", name.strip())
    cleaned = _UNSAFE_CHARS.sub("", cleaned)
    cleaned = _LEADING_NON_ALNUM.sub("", cleaned)
    cleaned = cleaned[:_MAX_NAME_LENGTH]
    return cleaned or _FALLBACK_NAME


def generate_run_id(name: str | None, now: datetime) -> str:
    """Build `<name>-<YYYY-MM-DD>-<epoch-ms>`, defaulting the name to `run`."""
    base = sanitize_workspace_name(name) if name else _DEFAULT_PREFIX
    epoch_ms = int(now.timestamp() * 1000)
    return f"{base}-{now:%Y-%m-%d}-{epoch_ms}"


def allocate_run_dir(
    root: Path,
    run_id: str | None,
    name: str | None,
    now: datetime,
) -> tuple[str, Path]:
    """Create the run directory under root and return (run_id, directory).

    An explicit run_id always maps to the same directory, which may already
    exist; the workspace lock decides whether it may be reused. Generated ids
    get a `-2`, `-3`, ... suffix until an unused directory is found.

    Raises:
        OSError: if root cannot be created.
    """
    root.mkdir(parents=True, exist_ok=True)
    if run_id is not None:
        explicit = sanitize_workspace_name(run_id)
        run_dir = root / explicit
        run_dir.mkdir(exist_ok=True)
        return explicit, run_dir

    base = generate_run_id(name=name, now=now)
    candidate = base
    sequence = 1
    while True:
        try:
            (root / candidate).mkdir()
            return candidate, root / candidate
        except FileExistsError:
            sequence += 1
            candidate = f"{base}-{sequence}"
