"""Base exception class for all ybench-specific errors."""


class YBenchError(Exception):
    """Base class for all ybench errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable
