"""
Show runtime for sandbox-cli.

This module implements the read-only commands (list, show, rules) and the
local selection command (use).
"""

import logging
from typing import Any, Dict, List, Optional

from sandbox_cli.config import EdgeRcSettings
from sandbox_cli.exceptions import SandboxNotFoundError
from sandbox_cli.operations.jwt_info import describe_jwt
from sandbox_cli.services.client_manager import SandboxClientManager
from sandbox_cli.services.sandbox_service import SandboxService

logger = logging.getLogger(__name__)


class ShowRuntime:
    """Runtime for the list, show, rules and use commands."""

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
        # Local-only commands work without .edgerc
        if self._sandbox_service is None:
            self._sandbox_service = SandboxService(self.settings)
        return self._sandbox_service

    def list_local(self) -> List[Dict[str, Any]]:
        return [
            {
                "current": sb.current,
                "name": sb.name,
                "sandbox_id": sb.sandbox_id,
            }
            for sb in self.client_manager.get_all_sandboxes()
        ]

    def list_remote(self) -> List[Dict[str, Any]]:
        local_ids = {sb.sandbox_id for sb in self.client_manager.get_all_sandboxes()}
        result = self.sandbox_service.get_all_sandboxes() or {}
        return [
            {
                "has_local": sb["sandboxId"] in local_ids,
                "name": sb.get("name"),
                "sandbox_id": sb["sandboxId"],
                "status": sb.get("status"),
            }
            for sb in result.get("sandboxes", [])
        ]

    def show(self, identifier: Optional[str]) -> Dict[str, Any]:
        """
        Collect local and remote details of a sandbox.

        Returns:
            Dict with `sandbox_id`, `local` (None when not registered locally),
            `jwt` (decoded claims of the local token) and `remote`
        """
        sandbox_id = self.client_manager.resolve_sandbox_id(identifier)
        local = self.client_manager.get_sandbox_local_data(sandbox_id)
        remote = self.sandbox_service.get_sandbox(sandbox_id)

        return {
            "sandbox_id": sandbox_id,
            "local": local,
            "jwt": describe_jwt(local["jwt"]) if local else None,
            "remote": remote,
        }

    def get_rules(self, identifier: Optional[str]) -> List[Dict[str, Any]]:
        """Rules of every property of a sandbox, one entry per property."""
        sandbox_id = self.client_manager.resolve_sandbox_id(identifier)
        sandbox = self.sandbox_service.get_sandbox(sandbox_id)

        rules_list = []
        for prop in sandbox.get("properties", []):
            pid = prop["sandboxPropertyId"]
            rules = self.sandbox_service.get_rules(sandbox_id, pid)
            rules_list.append({
                "title": f"sandbox_property_id: {pid}",
                "rules": rules.get("rules"),
            })
        return rules_list

    def use(self, identifier: str) -> Dict[str, Any]:
        """Make the single local sandbox matching identifier the current one."""
        record = self.client_manager.get_local_sandbox_for_identifier(identifier)
        if record is None:
            raise SandboxNotFoundError(f"could not find any local sandboxes matching input: {identifier}")

        self.client_manager.make_current(record.sandbox_id)
        return {"sandbox_id": record.sandbox_id, "name": record.name}
