"""
Update runtime for sandbox-cli.

This module implements the update, update-property and rotate-jwt commands.
"""

import logging
from typing import Any, Dict, List, Optional

from sandbox_cli.config import EdgeRcSettings
from sandbox_cli.operations.parsing import parse_to_boolean
from sandbox_cli.operations.recipe import load_rules_file
from sandbox_cli.services.client_manager import SandboxClientManager
from sandbox_cli.services.sandbox_service import SandboxService

logger = logging.getLogger(__name__)


class UpdateRuntime:
    """Runtime for the update, update-property and rotate-jwt commands."""

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

    def update(
        self,
        identifier: Optional[str],
        rules_path: Optional[str] = None,
        clonable: Optional[str] = None,
        name: Optional[str] = None,
        request_hostnames: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Update sandbox attributes and, for single-property sandboxes, its hostnames and rules.

        Args:
            identifier: Sandbox id or local name fragment; defaults to the current sandbox
            rules_path: PAPI rules JSON file
            clonable: y/n style flag
            name: New sandbox name
            request_hostnames: New request hostnames

        Returns:
            Dict containing the updated sandbox id

        Raises:
            ValueError: If a property change is requested on a sandbox without exactly one property
        """
        if not any([rules_path, clonable, name, request_hostnames]):
            raise ValueError("Nothing to update. Specify at least one of --rules, --clonable, --name, --requesthostnames")

        sandbox_id = self.client_manager.resolve_sandbox_id(identifier)
        sandbox = self.sandbox_service.get_sandbox(sandbox_id)

        if clonable:
            sandbox["isClonable"] = parse_to_boolean(clonable)
        if name:
            sandbox["name"] = name

        property_change = bool(request_hostnames) or bool(rules_path)
        properties = sandbox.get("properties", [])
        if property_change and len(properties) > 1:
            raise ValueError(
                f"Unable to update property as multiple were found ({len(properties)}). "
                "Please use update-property."
            )
        if property_change and not properties:
            raise ValueError(f"sandbox_id: {sandbox_id} has no properties to update")

        self.sandbox_service.update_sandbox(sandbox)
        if self.verbose:
            logger.info(f"updated sandbox_id: {sandbox_id}")

        if property_change:
            self.update_hostnames_and_rules(
                sandbox_id,
                properties[0]["sandboxPropertyId"],
                request_hostnames=request_hostnames,
                rules_path=rules_path,
            )

        return {"sandbox_id": sandbox_id}

    def update_hostnames_and_rules(
        self,
        sandbox_id: str,
        sandbox_property_id: str,
        request_hostnames: Optional[List[str]] = None,
        rules_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Replace the request hostnames and/or the rules of one sandbox property."""
        if request_hostnames:
            prop = self.sandbox_service.get_property(sandbox_id, sandbox_property_id)
            prop["requestHostnames"] = request_hostnames
            self.sandbox_service.update_property(sandbox_id, prop)
            logger.debug(f"updated hostnames of sandbox_property_id: {sandbox_property_id}")

        if rules_path:
            rules = load_rules_file(rules_path)
            self.sandbox_service.update_rules(sandbox_id, sandbox_property_id, rules)
            logger.debug(f"updated rules of sandbox_property_id: {sandbox_property_id}")

        return {"sandbox_id": sandbox_id, "sandbox_property_id": sandbox_property_id}

    def rotate_jwt(self, identifier: Optional[str]) -> Dict[str, Any]:
        """Ask the API for a new JWT and store it locally."""
        sandbox_id = self.client_manager.resolve_sandbox_id(identifier)
        response = self.sandbox_service.rotate_jwt(sandbox_id)
        new_jwt = response["jwtToken"]

        self.client_manager.update_jwt(sandbox_id, new_jwt)
        return {"sandbox_id": sandbox_id, "jwt": new_jwt}
