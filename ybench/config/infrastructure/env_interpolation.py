"""Recursive ${ENV_VAR} interpolation for raw config data.

`$${NAME}` is an escape: it is left as the literal text `${NAME}`, for values
that another component substitutes later (e.g. script hook arguments).
"""

import os
import re
from collections.abc import Mapping

_ENV_VAR_PATTERN = re.compile(r"(\$?)\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

type RawValue = (
    str | int | float | bool | None | list["RawValue"] | dict[str, "RawValue"]
)


def collect_missing_vars(
    data: RawValue, environ: Mapping[str, str] | None = None
) -> list[str]:
    """
    Walk the data tree and return the names of all referenced env vars that
    are not set.  Every missing var is collected before returning.
    """
    env = os.environ if environ is None else environ
    missing: list[str] = []
    _collect(data, env, missing)
    return missing


def _collect(data: RawValue, env: Mapping[str, str], missing: list[str]) -> None:
    if isinstance(data, str):
        for match in _ENV_VAR_PATTERN.finditer(data):
            escaped, var_name = match.groups()
            if escaped:
                continue
            if var_name not in env and var_name not in missing:
                missing.append(var_name)
    elif isinstance(data, list):
        for item in data:
            _collect(item, env, missing)
    elif isinstance(data, dict):
        for value in data.values():
            _collect(value, env, missing)


def interpolate(data: RawValue, environ: Mapping[str, str] | None = None) -> RawValue:
    """
    Recursively substitute all ${ENV_VAR} occurrences with their values.

    Assumes all referenced variables are present — call `collect_missing_vars`
    first and raise `MissingEnvVarsError` if any are absent.
    """
    env = os.environ if environ is None else environ
    if isinstance(data, str):
        return _ENV_VAR_PATTERN.sub(lambda m: _replace(m, env), data)
    if isinstance(data, list):
        return [interpolate(item, env) for item in data]
    if isinstance(data, dict):
        return {key: interpolate(value, env) for key, value in data.items()}
    return data


def _replace(match: re.Match[str], env: Mapping[str, str]) -> str:
    escaped, var_name = match.groups()
    if escaped:
        return "${" + var_name + "}"
    return env[var_name]
