"""
Create runtime for sandbox-cli.

This module implements the commands that bring a sandbox onto this machine:
create (from rules, a property or a recipe), clone, sync-sandbox and
add-property. Every new sandbox is registered locally with a generated
sandbox client configuration.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from sandbox_cli.config import EdgeRcSettings
from sandbox_cli.models.recipe_models import RecipeProperty
from sandbox_cli.operations.origins import get_origin_list_for_rules
from sandbox_cli.operations.parsing import parse_property_specifier
from sandbox_cli.operations.recipe import load_recipe, load_rules_file
from sandbox_cli.services.client_manager import SandboxClientManager
from sandbox_cli.services.sandbox_service import SandboxService

logger = logging.getLogger(__name__)

PassThroughPrompt = Callable[[List[str]], bool]


class CreateRuntime:
    """Runtime for the create, clone, sync-sandbox and add-property commands."""

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

    def create(
        self,
        name: str,
        request_hostnames: List[str],
        rules_path: Optional[str] = None,
        property_specifier: Optional[str] = None,
        is_clonable: bool = False,
        pass_through: Optional[bool] = None,
        pass_through_prompt: Optional[PassThroughPrompt] = None,
    ) -> Dict[str, Any]:
        """
        Create a sandbox from a rules file or an existing property and register it locally.

        Args:
            name: Sandbox name, also used as the local folder name
            request_hostnames: Hostnames routed to the sandbox
            rules_path: PAPI rules JSON file
            property_specifier: `<property_id | hostname>[:version]`
            is_clonable: Whether the sandbox can be cloned
            pass_through: Map detected origins to "pass-through"; None asks pass_through_prompt

        Returns:
            Dict containing the registration result

        Raises:
            ValueError: If the arguments do not describe exactly one source
        """
        if not name:
            raise ValueError("You must provide a name for your sandbox")
        if not request_hostnames:
            raise ValueError("--requesthostnames must be specified")
        if rules_path and property_specifier:
            raise ValueError("Both --property and --rules were specified. Pick only one of those arguments")
        if not rules_path and not property_specifier:
            raise ValueError("Unable to build sandbox. Must specify either --property or --rules")

        self._ensure_folder_available(name)

        if rules_path:
            papi_rules = load_rules_file(rules_path)
            response = self.sandbox_service.create_from_rules(papi_rules, request_hostnames, name, is_clonable)
        else:
            from_property = parse_property_specifier(property_specifier)
            logger.debug(f"Creating from: {from_property}")
            response = self.sandbox_service.create_from_property(request_hostnames, name, is_clonable, from_property)

        return self.register_sandbox(
            response["sandboxId"],
            response["jwtToken"],
            name,
            pass_through=pass_through,
            pass_through_prompt=pass_through_prompt,
        )

    def create_from_recipe(
        self,
        recipe_path: str,
        pass_through: Optional[bool] = None,
        pass_through_prompt: Optional[PassThroughPrompt] = None,
    ) -> Dict[str, Any]:
        """Create a sandbox with every property of a recipe file and register it locally."""
        recipe = load_recipe(recipe_path)
        self._ensure_folder_available(recipe.name)

        first_prop, other_props = recipe.properties[0], recipe.properties[1:]
        response = self._create_recipe_sandbox(first_prop, recipe.name, recipe.clonable)
        sandbox_id = response["sandboxId"]

        for idx, prop in enumerate(other_props, start=2):
            logger.info(f"creating sandbox property {idx} from recipe")
            self._add_recipe_property(sandbox_id, prop)

        return self.register_sandbox(
            sandbox_id,
            response["jwtToken"],
            recipe.name,
            client_config=recipe.client_config,
            pass_through=pass_through,
            pass_through_prompt=pass_through_prompt,
        )

    def clone(
        self,
        sandbox_id: str,
        name: str,
        pass_through: Optional[bool] = None,
        pass_through_prompt: Optional[PassThroughPrompt] = None,
    ) -> Dict[str, Any]:
        """Clone a remote sandbox and register the clone locally."""
        if not name:
            raise ValueError("parameter --name is required")
        self._ensure_folder_available(name)

        response = self.sandbox_service.clone_sandbox(sandbox_id, name)
        return self.register_sandbox(
            response["sandboxId"],
            response["jwtToken"],
            name,
            pass_through=pass_through,
            pass_through_prompt=pass_through_prompt,
        )

    def sync(
        self,
        sandbox_id: str,
        jwt: str,
        name: Optional[str] = None,
        pass_through: Optional[bool] = None,
        pass_through_prompt: Optional[PassThroughPrompt] = None,
    ) -> Dict[str, Any]:
        """Register an existing remote sandbox locally using a JWT obtained elsewhere."""
        if self.client_manager.datastore.has_record(sandbox_id):
            raise ValueError(f"sandbox_id: {sandbox_id} is already registered locally")

        sandbox = self.sandbox_service.get_sandbox(sandbox_id)
        name = name or sandbox.get("name") or sandbox_id
        self._ensure_folder_available(name)

        return self.register_sandbox(
            sandbox_id,
            jwt,
            name,
            sandbox=sandbox,
            pass_through=pass_through,
            pass_through_prompt=pass_through_prompt,
        )

    def add_property(
        self,
        sandbox_id: str,
        request_hostnames: List[str],
        rules_path: Optional[str] = None,
        property_specifier: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Add a sandbox property from a rules file or an existing property."""
        if not request_hostnames:
            raise ValueError("--requesthostnames must be specified")
        if bool(rules_path) == bool(property_specifier):
            raise ValueError("Specify exactly one of --rules or --property")

        prop = RecipeProperty(
            rulesPath=rules_path,
            property=property_specifier,
            requestHostnames=request_hostnames,
        )
        return self._add_recipe_property(sandbox_id, prop)

    def get_origin_list_for_sandbox_id(
        self,
        sandbox_id: str,
        sandbox: Optional[Dict[str, Any]] = None,
    ) -> List[str]:
        """Origins referenced by the rules of every property of a sandbox."""
        sandbox = sandbox or self.sandbox_service.get_sandbox(sandbox_id)
        rule_trees = []
        for prop in sandbox.get("properties", []):
            rules = self.sandbox_service.get_rules(sandbox_id, prop["sandboxPropertyId"])
            rule_trees.append(rules.get("rules"))
        return get_origin_list_for_rules(rule_trees)

    def register_sandbox(
        self,
        sandbox_id: str,
        jwt: str,
        name: str,
        client_config: Optional[Dict[str, Any]] = None,
        sandbox: Optional[Dict[str, Any]] = None,
        pass_through: Optional[bool] = None,
        pass_through_prompt: Optional[PassThroughPrompt] = None,
    ) -> Dict[str, Any]:
        """Build the origin list and register the sandbox in the local datastore."""
        logger.info("building origin list")
        origins = self.get_origin_list_for_sandbox_id(sandbox_id, sandbox)

        if pass_through is None:
            pass_through = bool(origins) and pass_through_prompt is not None and pass_through_prompt(origins)

        logger.info("registering sandbox in local datastore")
        registration = self.client_manager.register_new_sandbox(
            sandbox_id,
            jwt,
            name,
            origins,
            client_config=client_config,
            pass_through=pass_through,
        )

        return {
            "sandbox_id": sandbox_id,
            "name": name,
            "origins": origins,
            "pass_through": pass_through,
            "config_path": registration["configPath"],
        }

    def _ensure_folder_available(self, name: str) -> None:
        if self.client_manager.has_sandbox_folder(name):
            raise FileExistsError(
                f"Sandbox folder: {name} already exists locally. Please use a different sandbox name."
            )

    def _create_recipe_sandbox(self, prop: RecipeProperty, name: str, is_clonable: bool) -> Dict[str, Any]:
        if prop.property:
            from_property = parse_property_specifier(prop.property)
            return self.sandbox_service.create_from_property(
                prop.request_hostnames, name, is_clonable, from_property
            )
        papi_rules = load_rules_file(prop.rules_path)
        return self.sandbox_service.create_from_rules(papi_rules, prop.request_hostnames, name, is_clonable)

    def _add_recipe_property(self, sandbox_id: str, prop: RecipeProperty) -> Dict[str, Any]:
        if prop.property:
            from_property = parse_property_specifier(prop.property)
            logger.debug(f"adding property from: {from_property}")
            return self.sandbox_service.add_property_from_property(sandbox_id, prop.request_hostnames, from_property)
        papi_rules = load_rules_file(prop.rules_path)
        return self.sandbox_service.add_property_from_rules(sandbox_id, prop.request_hostnames, papi_rules)
