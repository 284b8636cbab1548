"""
Sandbox API service.

This service provides the REST calls to the sandbox API used to create,
clone, inspect, update and delete sandboxes and their properties. Requests
are signed with EdgeGrid credentials from the configured .edgerc section.
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from akamai.edgegrid import EdgeGridAuth, EdgeRc

from sandbox_cli.config import EdgeRcSettings
from sandbox_cli.constants import API_BASE_PATH, DEFAULT_CONNECT_TIMEOUT, DEFAULT_TIMEOUT
from sandbox_cli.exceptions import ConfigurationError, SandboxApiError
from sandbox_cli.utils.http import create_session
from sandbox_cli.utils.utils import to_json_pretty

logger = logging.getLogger(__name__)


class SandboxService:
    """Client for the sandbox API."""

    def __init__(
        self,
        settings: Optional[EdgeRcSettings] = None,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        """Initialize the service.

        Args:
            settings: EdgeGrid credentials and request options for this CLI run.
            session: Preconfigured session; skips .edgerc loading when given with base_url.
            base_url: API base URL, defaults to https://<host> of the .edgerc section.
            timeout: Read timeout in seconds.
            connect_timeout: Connection timeout in seconds.
        """
        self.settings = settings or EdgeRcSettings()
        self.timeout = timeout
        self.connect_timeout = connect_timeout

        if self.settings.debug:
            logging.basicConfig(level=logging.DEBUG)

        if session is not None and base_url:
            self.session = session
            self.base_url = base_url.rstrip('/')
        else:
            self.session, self.base_url = self._create_edgegrid_session()

    def _create_edgegrid_session(self):
        self.settings.validate()
        try:
            edgerc = EdgeRc(self.settings.path)
            host = edgerc.get(self.settings.section, 'host')
            auth = EdgeGridAuth.from_edgerc(edgerc, self.settings.section)
        except Exception as e:
            raise ConfigurationError(
                f"Unable to load section [{self.settings.section}] from {self.settings.path}: {e}"
            )

        session = create_session()
        session.auth = auth
        return session, f"https://{host}"

    def _send(self, method: str, path: str, body: Any = None) -> Any:
        url = f"{self.base_url}{API_BASE_PATH}{path}"
        params = {}
        if self.settings.account_key:
            params["accountSwitchKey"] = self.settings.account_key

        logger.debug(f"{method} {url}")
        response = self.session.request(
            method,
            url,
            params=params or None,
            json=body,
            timeout=(self.connect_timeout, self.timeout),
        )

        if not 200 <= response.status_code < 300:
            try:
                error_body = to_json_pretty(response.json())
            except ValueError:
                error_body = response.text
            logger.debug(f"got error code: {response.status_code} calling {method} {path}")
            raise SandboxApiError(response.status_code, error_body, method=method, path=path)

        if not response.content:
            return None
        return response.json()

    def _get(self, path: str) -> Any:
        return self._send('GET', path)

    def _post(self, path: str, body: Dict[str, Any]) -> Any:
        return self._send('POST', path, body)

    def _put(self, path: str, body: Dict[str, Any]) -> Any:
        return self._send('PUT', path, body)

    def delete_sandbox(self, sandbox_id: str) -> Any:
        return self._send('DELETE', f"/sandboxes/{sandbox_id}")

    def clone_sandbox(self, sandbox_id: str, name: str) -> Dict[str, Any]:
        return self._post(f"/sandboxes/{sandbox_id}/clone", {"name": name})

    def get_all_sandboxes(self) -> Dict[str, Any]:
        return self._get("/sandboxes")

    def get_sandbox(self, sandbox_id: str) -> Dict[str, Any]:
        return self._get(f"/sandboxes/{sandbox_id}")

    def update_sandbox(self, sandbox: Dict[str, Any]) -> Any:
        return self._put(f"/sandboxes/{sandbox['sandboxId']}", sandbox)

    def rotate_jwt(self, sandbox_id: str) -> Dict[str, Any]:
        return self._post(f"/sandboxes/{sandbox_id}/rotateJWT", {})

    def create_from_rules(
        self,
        papi_rules: Dict[str, Any],
        request_hostnames: List[str],
        name: str,
        is_clonable: bool,
    ) -> Dict[str, Any]:
        body = {
            "name": name,
            "requestHostnames": request_hostnames,
            "createFromRules": papi_rules,
            "isClonable": is_clonable,
        }
        return self._post("/sandboxes", body)

    def create_from_property(
        self,
        request_hostnames: List[str],
        name: str,
        is_clonable: bool,
        from_property: Dict[str, Any],
    ) -> Dict[str, Any]:
        body = {
            "name": name,
            "requestHostnames": request_hostnames,
            "createFromProperty": from_property,
            "isClonable": is_clonable,
        }
        return self._post("/sandboxes", body)

    def add_property_from_rules(
        self,
        sandbox_id: str,
        request_hostnames: List[str],
        papi_rules: Dict[str, Any],
    ) -> Dict[str, Any]:
        body = {
            "requestHostnames": request_hostnames,
            "createFromRules": papi_rules,
        }
        return self._post(f"/sandboxes/{sandbox_id}/properties", body)

    def add_property_from_property(
        self,
        sandbox_id: str,
        request_hostnames: List[str],
        from_property: Dict[str, Any],
    ) -> Dict[str, Any]:
        body = {
            "requestHostnames": request_hostnames,
            "createFromProperty": from_property,
        }
        return self._post(f"/sandboxes/{sandbox_id}/properties", body)

    def get_rules(self, sandbox_id: str, sandbox_property_id: str) -> Dict[str, Any]:
        return self._get(f"/sandboxes/{sandbox_id}/properties/{sandbox_property_id}/rules")

    def update_rules(self, sandbox_id: str, sandbox_property_id: str, rules: Dict[str, Any]) -> Any:
        # Accept both a bare rule tree and a full PAPI rules document
        body = {"rules": rules.get("rules", rules)}
        return self._put(f"/sandboxes/{sandbox_id}/properties/{sandbox_property_id}/rules", body)

    def get_property(self, sandbox_id: str, sandbox_property_id: str) -> Dict[str, Any]:
        return self._get(f"/sandboxes/{sandbox_id}/properties/{sandbox_property_id}")

    def update_property(self, sandbox_id: str, property_obj: Dict[str, Any]) -> Any:
        return self._put(f"/sandboxes/{sandbox_id}/properties/{property_obj['sandboxPropertyId']}", property_obj)

    def close(self) -> None:
        """Close the underlying session and release connection pool resources."""
        self.session.close()
