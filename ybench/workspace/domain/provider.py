"""WorkspaceProvider protocol — what the orchestrator needs from a workspace manager."""

from typing import Protocol

from ybench.config.domain.run import RunConfig
from ybench.workspace.domain.workspace import Workspace


class WorkspaceProvider(Protocol):
    async def create_workspace(self, config: RunConfig) -> Workspace: ...

    async def cleanup(self, workspace: Workspace) -> None: ...
