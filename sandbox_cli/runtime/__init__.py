"""
Runtime module for sandbox-cli.

This module contains the business logic for each CLI subcommand,
exposed as both CLI commands and Python SDK functions.
"""

from .client_runtime import ClientRuntime
from .create_runtime import CreateRuntime
from .delete_runtime import DeleteRuntime
from .show_runtime import ShowRuntime
from .update_runtime import UpdateRuntime

__all__ = ["ClientRuntime", "CreateRuntime", "DeleteRuntime", "ShowRuntime", "UpdateRuntime"]
