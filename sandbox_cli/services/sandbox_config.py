"""
Sandbox client configuration service.

Generates the config.json consumed by the sandbox client runtime, either from
the bundled template or from a caller-supplied base configuration, and keeps
its JWT in sync when the token is rotated.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from sandbox_cli.constants import CONFIG_FILE, ORIGIN_PLACEHOLDER
from sandbox_cli.exceptions import CorruptLocalStateError, SandboxConfigError
from sandbox_cli.models.sandbox_models import (
    DEFAULT_ORIGIN_TARGET,
    PASS_THROUGH_TARGET,
    OriginMapping,
)
from sandbox_cli.utils.utils import read_json_file, write_json_file

logger = logging.getLogger(__name__)

TEMPLATE_PATH = Path(__file__).resolve().parent.parent / "template" / "client-config.json"


def merge_origins(config: Dict[str, Any], origins: Optional[Iterable[str]], pass_through: bool) -> Dict[str, Any]:
    """
    Append a mapping for every origin not already mapped in config.

    Existing entries are matched on their trimmed `from` value and left
    untouched. Mutates and returns config.
    """
    mappings: List[Dict[str, Any]] = config.setdefault("originMappings", [])
    seen = {(om.get("from") or "").strip() for om in mappings}
    target = PASS_THROUGH_TARGET if pass_through else DEFAULT_ORIGIN_TARGET

    for origin in origins or []:
        if origin in seen:
            continue
        seen.add(origin)
        mappings.append(OriginMapping(origin, target).to_json())

    return config


class SandboxConfig:
    """The config.json of one local sandbox folder."""

    def __init__(
        self,
        sandboxes_base_dir: Union[str, Path],
        sandbox_name: str,
        template_path: Optional[Path] = None,
    ) -> None:
        self.sandbox_directory = Path(sandboxes_base_dir) / sandbox_name
        self.config_path = self.sandbox_directory / CONFIG_FILE
        self.template_path = template_path or TEMPLATE_PATH
        self.client_config: Optional[Dict[str, Any]] = None

    def use_client_config(self, config: Optional[Dict[str, Any]]) -> None:
        """Use config as the base instead of the bundled template."""
        self.client_config = config

    def create(self, jwt: str, origins: Optional[List[str]], pass_through: bool) -> Dict[str, str]:
        """
        Generate config.json in a new sandbox directory.

        Args:
            jwt: Token the sandbox client authenticates with
            origins: Origin hostnames detected in the sandbox rules
            pass_through: Map new origins to "pass-through" instead of the placeholder target

        Returns:
            Dict with the written `configPath`

        Raises:
            FileExistsError: If the sandbox directory already exists
            SandboxConfigError: If the template cannot be loaded
        """
        if self.client_config is not None:
            config = merge_origins(copy.deepcopy(self.client_config), origins, pass_through)
        else:
            config = self._build_new_config(origins, pass_through)
        config["jwt"] = jwt

        self.sandbox_directory.mkdir(parents=False, exist_ok=False)
        self._flush_to_file(config)

        logger.debug(f"Generated sandbox client config at {self.config_path}")
        return {"configPath": str(self.config_path)}

    def update_jwt(self, jwt: str) -> None:
        """
        Replace the token in an existing config.json.

        Raises:
            SandboxConfigError: If config.json does not exist
        """
        config = self.read_config()
        config["jwt"] = jwt
        self._flush_to_file(config)

    def read_config(self) -> Dict[str, Any]:
        if not self.config_path.is_file():
            raise SandboxConfigError(
                f"Unable to read config: {self.config_path}. File does not exist or is not readable."
            )
        config = read_json_file(self.config_path)
        if not isinstance(config, dict):
            raise CorruptLocalStateError(str(self.config_path), "expected a JSON object")
        return config

    def _flush_to_file(self, config: Dict[str, Any]) -> None:
        write_json_file(self.config_path, config)

    def _load_template(self) -> Dict[str, Any]:
        if not self.template_path.is_file():
            raise SandboxConfigError(
                f"Sandbox client config template not found at {self.template_path}. "
                "The installation is incomplete."
            )
        return read_json_file(self.template_path)

    def _build_new_config(self, origins: Optional[List[str]], pass_through: bool) -> Dict[str, Any]:
        config = self._load_template()
        if not origins:
            config.setdefault("originMappings", []).append(
                OriginMapping(ORIGIN_PLACEHOLDER, DEFAULT_ORIGIN_TARGET).to_json()
            )
            return config
        return merge_origins(config, origins, pass_through)
