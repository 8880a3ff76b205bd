"""Error types raised by the git client."""

from ybench.core.errors import YBenchError


class GitCommandError(YBenchError):
    """Raised when a git command exits with an unexpected status."""

    def __init__(self, args: list[str], exit_code: int, stderr: str) -> None:
        self.args_list = args
        self.exit_code = exit_code
        self.stderr = stderr
        command = " ".join(args[:2])
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else "no output"
        super().__init__(
            f"Failed to run '{command}': exit code {exit_code}: {detail}"
        )


class GitTimeoutError(YBenchError):
    """Raised when a git command exceeds its time limit."""

    def __init__(self, args: list[str], timeout_ms: int) -> None:
        self.args_list = args
        self.timeout_ms = timeout_ms
        command = " ".join(args[:2])
        super().__init__(
            f"Failed to run '{command}': timed out after {timeout_ms}ms",
            retriable=True,
        )
