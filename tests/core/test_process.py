"""Tests for run_process."""

import sys
import time
from pathlib import Path

import pytest

from ybench.core.process import run_process

_PRINT_THEN_SLEEP = "import time; print('started'); time.sleep(30)"


class TestRunProcess:
    """Completed processes report their output and exit status."""

    async def test_captures_stdout_and_exit_code(self) -> None:
        result = await run_process(["sh", "-c", "echo hello; exit 3"])

        assert result.stdout == "hello\n"
        assert result.exit_code == 3
        assert result.timed_out is False

    async def test_captures_stderr_separately(self) -> None:
        result = await run_process(["sh", "-c", "echo out; echo err >&2"])

        assert result.stdout == "out\n"
        assert result.stderr == "err\n"

    async def test_merges_stderr_when_requested(self) -> None:
        result = await run_process(
            ["sh", "-c", "echo out; echo err >&2"], merge_stderr=True
        )

        assert "out" in result.stdout
        assert "err" in result.stdout
        assert result.stderr == ""

    async def test_runs_in_cwd(self, tmp_path: Path) -> None:
        result = await run_process(["pwd"], cwd=tmp_path)

        assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()

    async def test_passes_env(self) -> None:
        result = await run_process(
            ["sh", "-c", 'echo "$YBENCH_TEST_VALUE"'],
            env={"YBENCH_TEST_VALUE": "42", "PATH": "/usr/bin:/bin"},
        )

        assert result.stdout.strip() == "42"

    async def test_stdin_is_closed(self) -> None:
        result = await run_process(["cat"], timeout_seconds=5)

        assert result.exit_code == 0
        assert result.timed_out is False

    async def test_missing_executable_raises_os_error(self) -> None:
        with pytest.raises(OSError):
            await run_process(["definitely-not-a-real-binary-ybench"])


class TestRunProcessTimeout:
    """A process exceeding its limit is killed and reported as timed out."""

    async def test_times_out_and_reports_124(self) -> None:
        start = time.monotonic()

        result = await run_process(["sleep", "30"], timeout_seconds=0.2)

        assert result.timed_out is True
        assert result.exit_code == 124
        assert time.monotonic() - start < 10

    async def test_keeps_output_before_deadline(self) -> None:
        result = await run_process(
            [sys.executable, "-u", "-c", _PRINT_THEN_SLEEP],
            timeout_seconds=1.0,
        )

        assert result.timed_out is True
        assert "started" in result.stdout

    async def test_kills_spawned_children(self) -> None:
        start = time.monotonic()

        result = await run_process(
            ["sh", "-c", "sleep 30 & sleep 30; wait"], timeout_seconds=0.2
        )

        assert result.timed_out is True
        assert time.monotonic() - start < 10
