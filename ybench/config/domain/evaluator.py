"""Evaluator configuration model."""

from typing import Any

from pydantic import BaseModel, Field


class EvaluatorConfig(BaseModel, frozen=True):
    """One configured evaluator: a registry name plus its own config slice."""

    name: str = Field(min_length=1)
    config: dict[str, Any] = {}
    timeout_ms: int | None = Field(default=None, gt=0)
