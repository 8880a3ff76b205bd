"""Observer port for the config domain — defines events in domain language."""

from typing import Protocol


class ConfigObserver(Protocol):
    def config_loaded(self, name: str, evaluator_names: list[str]) -> None: ...

    def config_evaluator_file_resolved(self, name: str, path: str) -> None: ...

    def config_expected_reference_missing(self, evaluator: str) -> None: ...
