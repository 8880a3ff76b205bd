"""Post-evaluation hook configuration model."""

from typing import Any

from pydantic import BaseModel, Field


class PostEvaluationConfig(BaseModel, frozen=True):
    """One configured hook: a registry name (webhook, database, script) plus its settings."""

    name: str = Field(min_length=1)
    config: dict[str, Any] = {}
