"""
This module defines the records persisted in the local datastore and the
origin mapping shapes written into a sandbox client configuration.
"""

from dataclasses import dataclass
from typing import Any, Dict, Union

from sandbox_cli.constants import PASS_THROUGH, TARGET_HOST_PLACEHOLDER


@dataclass
class SandboxRecord:
    """A sandbox known to the local datastore."""
    sandbox_id: str
    folder: str
    current: bool
    name: str
    jwt: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the on-disk key names."""
        return {
            "sandboxId": self.sandbox_id,
            "folder": self.folder,
            "current": self.current,
            "name": self.name,
            "jwt": self.jwt,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SandboxRecord":
        return cls(
            sandbox_id=data["sandboxId"],
            folder=data.get("folder"),
            current=bool(data.get("current", False)),
            name=data.get("name"),
            jwt=data.get("jwt"),
        )


@dataclass(frozen=True)
class StructuredTarget:
    """Origin target pointing at a concrete host."""
    secure: bool = False
    port: int = 80
    host: str = TARGET_HOST_PLACEHOLDER

    def to_json(self) -> Dict[str, Any]:
        return {"secure": self.secure, "port": self.port, "host": self.host}


@dataclass(frozen=True)
class PassThroughTarget:
    """Origin target telling the sandbox client to forward to the real origin."""

    def to_json(self) -> str:
        return PASS_THROUGH


OriginTarget = Union[StructuredTarget, PassThroughTarget]

DEFAULT_ORIGIN_TARGET = StructuredTarget()
PASS_THROUGH_TARGET = PassThroughTarget()


@dataclass(frozen=True)
class OriginMapping:
    """One entry of originMappings."""
    origin: str
    target: OriginTarget

    def to_json(self) -> Dict[str, Any]:
        return {"from": self.origin, "to": self.target.to_json()}
