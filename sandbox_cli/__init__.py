"""
Sandbox CLI - A developer tool for creating sandboxes and running the sandbox client against them.
"""

__version__ = "0.1.0"

from .cli.main import app
from .runtime.client_runtime import ClientRuntime
from .runtime.create_runtime import CreateRuntime
from .runtime.delete_runtime import DeleteRuntime
from .runtime.show_runtime import ShowRuntime
from .runtime.update_runtime import UpdateRuntime

__all__ = [
    "app",
    "ClientRuntime",
    "CreateRuntime",
    "DeleteRuntime",
    "ShowRuntime",
    "UpdateRuntime",
]
