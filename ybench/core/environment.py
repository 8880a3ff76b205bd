"""Host environment snapshot recorded alongside agent logs and results."""

import platform
from importlib.metadata import PackageNotFoundError, version

from pydantic import BaseModel

_DISTRIBUTION = "ybench"
_UNKNOWN_VERSION = "0.0.0"


class EnvironmentInfo(BaseModel, frozen=True):
    os: str
    arch: str
    python_version: str
    ybench_version: str


def ybench_version() -> str:
    try:
        return version(_DISTRIBUTION)
    except PackageNotFoundError:
        return _UNKNOWN_VERSION


def detect_environment() -> EnvironmentInfo:
    return EnvironmentInfo(
        os=f"{platform.system().lower()}-{platform.release()}",
        arch=platform.machine(),
        python_version=platform.python_version(),
        ybench_version=ybench_version(),
    )
