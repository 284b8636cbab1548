"""
Pydantic models for sandbox recipe files.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, validator


class RecipeProperty(BaseModel):
    """A sandbox property described by a recipe."""

    rules_path: Optional[str] = Field(None, alias="rulesPath", description="PAPI rules JSON file")
    property: Optional[str] = Field(None, description="Property specifier: <property_id | hostname>[:version]")
    request_hostnames: List[str] = Field(..., alias="requestHostnames", description="Hostnames routed to this property")

    @validator('request_hostnames')
    def normalize_hostnames(cls, v):
        hostnames = [hn.strip().lower() for hn in v if hn and hn.strip()]
        if not hostnames:
            raise ValueError("requestHostnames must contain at least one hostname")
        return hostnames


class SandboxRecipe(BaseModel):
    """Pydantic model for the `sandbox` element of a recipe file."""

    name: str = Field(..., description="Name of the sandbox")
    clonable: bool = Field(..., description="Whether the sandbox can be cloned")
    properties: List[RecipeProperty] = Field(..., description="Sandbox properties to create")

    # Base sandbox client configuration, origins are merged into it
    client_config: Optional[Dict[str, Any]] = Field(None, alias="clientConfig")

    @validator('properties')
    def validate_properties(cls, v):
        if not v:
            raise ValueError("recipe file does not contain any properties")
        return v

    @validator('client_config')
    def validate_client_config(cls, v):
        if v is not None and not isinstance(v.get("originMappings", []), list):
            raise ValueError("clientConfig.originMappings must be a list")
        return v
