"""YAML config loader — parses, resolves evaluator files, interpolates env vars, validates."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ybench.config.domain.observer import ConfigObserver
from ybench.config.domain.run import RunConfig
from ybench.config.infrastructure.env_interpolation import (
    collect_missing_vars,
    interpolate,
)
from ybench.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)

# Evaluators that compare against the expected reference tree.
_EXPECTED_REFERENCE_EVALUATORS = frozenset({"expected-diff"})


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns a RunConfig from a YAML file."""

    def __init__(
        self,
        observer: ConfigObserver,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._observer = observer
        self._environ = environ

    def load(self, path: Path) -> RunConfig:
        """
        Load, interpolate, validate, and return a RunConfig from a YAML file.

        Evaluator entries may be a bare name, an inline ``{name, config}``
        mapping, or ``{file: path}`` pointing at another YAML file (relative
        to the directory of the file that references it).

        Raises:
            ConfigLoadError: if the file or a referenced evaluator file cannot be
                read or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset (all collected first).
            ConfigValidationError: if the schema is violated.
        """
        raw = _parse_yaml(path=path)
        if not isinstance(raw, dict):
            raise ConfigValidationError(f"top level of {path} must be a mapping")
        resolved = _resolve_evaluator_refs(
            raw=raw, base_dir=path.parent, observer=self._observer
        )
        _check_missing_env_vars(raw=resolved, environ=self._environ)
        interpolated = interpolate(resolved, self._environ)
        cfg = _build_config(resolved=interpolated)
        _emit_warnings(cfg=cfg, observer=self._observer)
        self._observer.config_loaded(
            name=cfg.name, evaluator_names=[e.name for e in cfg.evaluators]
        )
        return cfg


def _parse_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh)
    except FileNotFoundError as exc:
        raise ConfigLoadError(path=path) from exc
    except OSError as exc:
        raise ConfigLoadError(path=path, reason=str(exc)) from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path=path, reason=f"invalid YAML ({exc})") from exc


def _check_missing_env_vars(raw: Any, environ: Mapping[str, str] | None) -> None:
    """Raise MissingEnvVarsError if any ${ENV_VAR} references in raw are unset."""
    missing = collect_missing_vars(raw, environ)
    if missing:
        raise MissingEnvVarsError(missing)


def _resolve_evaluator_refs(
    raw: dict[str, Any], base_dir: Path, observer: ConfigObserver
) -> dict[str, Any]:
    """
    Normalise every evaluator entry into an inline ``{name, config, ...}`` mapping.

    Raises:
        ConfigValidationError: listing ALL malformed entries before raising.
        ConfigLoadError: if a referenced evaluator file cannot be read.
    """
    entries = raw.get("evaluators")
    if not isinstance(entries, list):
        return raw

    problems: list[str] = []
    resolved: list[Any] = []
    for index, entry in enumerate(entries):
        if isinstance(entry, str):
            resolved.append({"name": entry})
        elif isinstance(entry, dict) and "file" in entry:
            file_path = base_dir / str(entry["file"])
            loaded = _parse_yaml(path=file_path)
            if not isinstance(loaded, dict) or "name" not in loaded:
                problems.append(
                    f"evaluator file '{entry['file']}' must define a 'name' mapping key"
                )
                continue
            observer.config_evaluator_file_resolved(
                name=str(loaded["name"]), path=str(file_path)
            )
            resolved.append(loaded)
        elif isinstance(entry, dict):
            resolved.append(entry)
        else:
            problems.append(
                f"evaluator entry {index} must be a name, a mapping, or a file reference"
            )

    if problems:
        raise ConfigValidationError("; ".join(problems))

    return {**raw, "evaluators": resolved}


def _build_config(resolved: Any) -> RunConfig:
    try:
        return RunConfig.model_validate(resolved)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def _emit_warnings(cfg: RunConfig, observer: ConfigObserver) -> None:
    if cfg.expected is not None:
        return
    for evaluator in cfg.evaluators:
        if evaluator.name in _EXPECTED_REFERENCE_EVALUATORS:
            observer.config_expected_reference_missing(evaluator=evaluator.name)
