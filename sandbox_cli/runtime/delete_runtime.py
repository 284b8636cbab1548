"""
Delete runtime for sandbox-cli.

This module implements the delete command: the sandbox is removed remotely
and, when it is known locally, its folder and datastore record are flushed.
"""

import logging
from typing import Any, Dict, Optional

from sandbox_cli.config import EdgeRcSettings
from sandbox_cli.services.client_manager import SandboxClientManager
from sandbox_cli.services.sandbox_service import SandboxService

logger = logging.getLogger(__name__)


class DeleteRuntime:
    """Runtime for the delete command."""

    def __init__(
        self,
        settings: Optional[EdgeRcSettings] = None,
        client_manager: Optional[SandboxClientManager] = None,
        sandbox_service: Optional[SandboxService] = None,
        verbose: bool = False,
    ) -> None:
        self.verbose = verbose
        self.settings = settings or EdgeRcSettings()
        self.client_manager = client_manager or SandboxClientManager(verbose=verbose)
        self._sandbox_service = sandbox_service

        if verbose:
            logging.basicConfig(level=logging.DEBUG)

    @property
    def sandbox_service(self) -> SandboxService:
        if self._sandbox_service is None:
            self._sandbox_service = SandboxService(self.settings)
        return self._sandbox_service

    def resolve_target(self, identifier: str) -> Dict[str, Any]:
        """Describe what delete would remove, for confirmation prompts."""
        record = self.client_manager.get_local_sandbox_for_identifier(identifier)
        if record is None:
            return {"sandbox_id": identifier, "name": None, "local": False}
        return {"sandbox_id": record.sandbox_id, "name": record.name, "local": True}

    def delete(self, identifier: str) -> Dict[str, Any]:
        target = self.resolve_target(identifier)
        sandbox_id = target["sandbox_id"]

        logger.info(f"deleting sandboxId: {sandbox_id}")
        self.sandbox_service.delete_sandbox(sandbox_id)

        if target["local"]:
            target["local_files_removed"] = self.client_manager.flush_local_sandbox(sandbox_id)
        return target
