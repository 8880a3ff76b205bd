"""Agent configuration model."""

from pydantic import BaseModel, Field


class AgentConfig(BaseModel, frozen=True):
    """Which agent runs in the workspace and how it is invoked.

    `command` is an argv list for the generic `command` agent; any element may
    contain the `{prompt}` placeholder. `model` and `system_prompt` are used by
    SDK-backed agents.
    """

    type: str = Field(min_length=1)
    prompt: str = Field(min_length=1)
    model: str | None = None
    system_prompt: str | None = None
    command: list[str] = []
    env: dict[str, str] = {}
