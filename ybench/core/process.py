"""Async subprocess execution with a wall-clock limit and process-group termination."""

import asyncio
import os
import signal
from collections.abc import Mapping, Sequence

from pydantic import BaseModel

_READ_CHUNK = 65536
_TERM_GRACE_SECONDS = 5.0


class ProcessResult(BaseModel, frozen=True):
    """Outcome of one finished (or killed) child process."""

    args: list[str]
    exit_code: int
    stdout: str
    stderr: str
    timed_out: bool = False


async def run_process(
    args: Sequence[str],
    cwd: str | os.PathLike[str] | None = None,
    timeout_seconds: float | None = None,
    env: Mapping[str, str] | None = None,
    merge_stderr: bool = False,
) -> ProcessResult:
    """Run args to completion and capture its output.

    The child is started in its own session so that on timeout the whole
    process group (including anything it spawned) is terminated. Output read
    before the deadline is kept. A timed-out process reports exit code 124.

    Raises:
        OSError: if the executable cannot be launched.
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        env=dict(env) if env is not None else None,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT if merge_stderr else asyncio.subprocess.PIPE,
        start_new_session=True,
    )
    stdout_chunks: list[bytes] = []
    stderr_chunks: list[bytes] = []
    timed_out = False

    try:
        async with asyncio.timeout(timeout_seconds):
            await asyncio.gather(
                _drain(process.stdout, stdout_chunks),
                _drain(process.stderr, stderr_chunks),
                process.wait(),
            )
    except TimeoutError:
        timed_out = True
        await terminate_process_group(process)
    except asyncio.CancelledError:
        await terminate_process_group(process)
        raise

    exit_code = 124 if timed_out else (process.returncode or 0)
    return ProcessResult(
        args=list(args),
        exit_code=exit_code,
        stdout=b"".join(stdout_chunks).decode("utf-8", errors="replace"),
        stderr=b"".join(stderr_chunks).decode("utf-8", errors="replace"),
        timed_out=timed_out,
    )


async def _drain(stream: asyncio.StreamReader | None, chunks: list[bytes]) -> None:
    if stream is None:
        return
    while chunk := await stream.read(_READ_CHUNK):
        chunks.append(chunk)


async def terminate_process_group(
    process: asyncio.subprocess.Process,
    grace_seconds: float = _TERM_GRACE_SECONDS,
) -> None:
    """SIGTERM the child's process group, then SIGKILL it if it is still alive."""
    if process.returncode is not None:
        return
    try:
        os.killpg(process.pid, signal.SIGTERM)
    except ProcessLookupError:
        return
    try:
        async with asyncio.timeout(grace_seconds):
            await process.wait()
        return
    except TimeoutError:
        pass
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        return
    await process.wait()
