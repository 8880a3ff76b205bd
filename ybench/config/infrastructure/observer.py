"""Structlog implementation of the ConfigObserver port."""

import structlog


class StructlogConfigObserver:
    """Delegates config domain events to structlog.

    Satisfies the ConfigObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def config_loaded(self, name: str, evaluator_names: list[str]) -> None:
        self._log.info("config.loaded", name=name, evaluators=evaluator_names)

    def config_evaluator_file_resolved(self, name: str, path: str) -> None:
        self._log.debug("config.evaluator_file_resolved", name=name, path=path)

    def config_expected_reference_missing(self, evaluator: str) -> None:
        self._log.warning(
            "config.expected_reference_missing",
            evaluator=evaluator,
            message="Evaluator compares against an expected reference but no"
            " 'expected' branch is configured; it will be skipped",
        )
