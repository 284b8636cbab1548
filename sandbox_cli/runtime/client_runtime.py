"""
Client runtime for sandbox-cli.

This module implements the install and start commands that manage the
sandbox client runtime.
"""

import logging
from typing import Any, Dict, Optional

from sandbox_cli.services.client_manager import SandboxClientManager

logger = logging.getLogger(__name__)


class ClientRuntime:
    """Runtime for the install and start commands."""

    def __init__(self, client_manager: Optional[SandboxClientManager] = None, verbose: bool = False) -> None:
        self.verbose = verbose
        self.client_manager = client_manager or SandboxClientManager(verbose=verbose)

        if verbose:
            logging.basicConfig(level=logging.DEBUG)

    def install(self) -> Dict[str, Any]:
        """Install or update the sandbox client."""
        return self.client_manager.download_client_if_necessary()

    def prepare_start(self, print_logs: bool = False) -> Optional[Dict[str, Any]]:
        """
        Make sure the client is installed and build its startup command.

        Returns:
            Startup info for execute, or None when no sandbox is configured
        """
        if not self.client_manager.get_all_sandboxes():
            return None

        if not self.client_manager.is_sandbox_client_installed():
            logger.info("no sandbox client installed. Installing sandbox client...")
            self.client_manager.download_client()

        return self.client_manager.get_startup_info(print_logs=print_logs)

    def start(self, startup_info: Dict[str, Any]) -> int:
        return self.client_manager.execute_sandbox_client(startup_info)
