"""Error types raised by the evaluation orchestrator."""

from ybench.core.errors import YBenchError


class RunConfigurationError(YBenchError):
    """Raised when a RunConfig cannot be attempted, before any workspace is touched."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to start evaluation: {reason}")
