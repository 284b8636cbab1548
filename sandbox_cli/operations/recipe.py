"""Loading and validation of recipe and PAPI rules files."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError

from sandbox_cli.exceptions import RecipeError
from sandbox_cli.models.recipe_models import SandboxRecipe

logger = logging.getLogger(__name__)


def load_rules_file(rules_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a PAPI rules JSON file supplied by the user.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON
    """
    rules_path = Path(rules_path)
    if not rules_path.is_file():
        raise FileNotFoundError(f"file: {rules_path} does not exist")
    try:
        with open(rules_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"JSON file is invalid {rules_path}: {e}")


def resolve_rules_path(recipe_file_path: Path, rules_path: str) -> str:
    """Rules paths are taken as given when they exist, else relative to the recipe."""
    if Path(rules_path).exists():
        return rules_path
    return str(recipe_file_path.parent / rules_path)


def load_recipe(recipe_file_path: Union[str, Path]) -> SandboxRecipe:
    """
    Load a recipe file (JSON, or YAML by extension) and validate it.

    Args:
        recipe_file_path: Path to the recipe file

    Returns:
        SandboxRecipe: Validated recipe with resolved rules paths

    Raises:
        RecipeError: If the file is missing or the recipe is invalid
    """
    recipe_file_path = Path(recipe_file_path)
    if not recipe_file_path.is_file():
        raise RecipeError(f"File {recipe_file_path} does not exist.")

    try:
        with open(recipe_file_path, 'r', encoding='utf-8') as f:
            if recipe_file_path.suffix.lower() in ('.yaml', '.yml'):
                recipe = yaml.safe_load(f) or {}
            else:
                recipe = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise RecipeError(f"Invalid recipe file {recipe_file_path}: {e}")

    if not isinstance(recipe, dict) or not recipe.get("sandbox"):
        raise RecipeError("no sandbox element found")

    try:
        sandbox_recipe = SandboxRecipe(**recipe["sandbox"])
    except ValidationError as e:
        raise RecipeError(f"Invalid recipe {recipe_file_path}: {e}")

    for idx, prop in enumerate(sandbox_recipe.properties):
        if prop.rules_path:
            prop.rules_path = resolve_rules_path(recipe_file_path, prop.rules_path)
        if not prop.rules_path and not prop.property:
            raise RecipeError(
                f"Error with property {idx} couldn't locate rulesPath or property for sandbox property."
            )
        if prop.rules_path and not Path(prop.rules_path).exists():
            raise RecipeError(f"Error with property {idx} could not load file at path: {prop.rules_path}")

    logger.debug(f"Loaded recipe {recipe_file_path} with {len(sandbox_recipe.properties)} properties")
    return sandbox_recipe
