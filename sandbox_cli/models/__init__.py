"""
Data models shared by the sandbox-cli services and runtimes.
"""

from .sandbox_models import (
    DEFAULT_ORIGIN_TARGET,
    PASS_THROUGH_TARGET,
    OriginMapping,
    PassThroughTarget,
    SandboxRecord,
    StructuredTarget,
)
from .recipe_models import RecipeProperty, SandboxRecipe

__all__ = [
    "DEFAULT_ORIGIN_TARGET",
    "PASS_THROUGH_TARGET",
    "OriginMapping",
    "PassThroughTarget",
    "SandboxRecord",
    "StructuredTarget",
    "RecipeProperty",
    "SandboxRecipe",
]
