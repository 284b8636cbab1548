"""
Sandbox client manager.

This service owns the local sandbox-cli cache: it registers sandboxes in the
datastore together with their generated client configuration, and installs,
updates and launches the sandbox client runtime (a Java application published
as GitHub releases).
"""

import logging
import os
import re
import shutil
import subprocess
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import requests

from sandbox_cli import constants
from sandbox_cli.config import CliPaths, get_releases_url
from sandbox_cli.exceptions import SandboxClientError, SandboxNotFoundError
from sandbox_cli.models.sandbox_models import SandboxRecord
from sandbox_cli.services.sandbox_config import SandboxConfig
from sandbox_cli.services.sandbox_datastore import SandboxDatastore
from sandbox_cli.utils.http import create_session

logger = logging.getLogger(__name__)

JAR_GLOB = "sandbox-client-*-RELEASE/lib/sandbox-client-*-RELEASE.jar"
JAR_VERSION_PATTERN = re.compile(r"sandbox-client-(\d+\.\d+\.\d+)-RELEASE\.jar$")
ZIP_ASSET_SUFFIX = "-default.zip"
PRINT_LOGS_PROFILE = "print-logs"


def parse_version(version: str) -> Tuple[int, ...]:
    """Parse `X.Y.Z` (optionally prefixed with v) into a comparable tuple."""
    match = re.match(r"^v?(\d+)\.(\d+)\.(\d+)", version.strip())
    if not match:
        raise ValueError(f"Unable to parse version: {version}")
    return tuple(int(part) for part in match.groups())


class SandboxClientManager:
    """Manages local sandboxes and the sandbox client runtime."""

    def __init__(
        self,
        paths: Optional[CliPaths] = None,
        releases_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        verbose: bool = False,
    ) -> None:
        self.verbose = verbose
        if verbose:
            logging.basicConfig(level=logging.DEBUG)

        self.paths = (paths or CliPaths.from_cache_path()).ensure()
        self.datastore = SandboxDatastore(self.paths.datastore_file)
        self.releases_url = releases_url or get_releases_url()
        self.session = session or create_session()
        self._cached_release: Optional[Dict[str, Any]] = None

    # Local sandboxes

    def register_new_sandbox(
        self,
        sandbox_id: str,
        jwt: str,
        name: str,
        origins: List[str],
        client_config: Optional[Dict[str, Any]] = None,
        pass_through: bool = False,
    ) -> Dict[str, str]:
        """
        Generate the client configuration and record the sandbox as current.

        Args:
            sandbox_id: ID assigned by the sandbox API
            jwt: Token the sandbox client authenticates with
            name: Sandbox name, also used as the local folder name
            origins: Origin hostnames detected in the sandbox rules
            client_config: Optional base configuration to merge origins into
            pass_through: Map new origins to "pass-through"

        Returns:
            Dict with the generated `configPath`

        Raises:
            FileExistsError: If a local folder for this name already exists
        """
        sandbox_config = SandboxConfig(self.paths.sandboxes, name)
        if client_config is not None:
            sandbox_config.use_client_config(client_config)
        registration = sandbox_config.create(jwt, origins, pass_through)

        self.datastore.save(SandboxRecord(sandbox_id, name, True, name, jwt))
        logger.info(f"sandbox-id: {sandbox_id} {name} is now active")
        return registration

    def search_local_sandboxes(self, text: str) -> List[SandboxRecord]:
        return [
            sb for sb in self.get_all_sandboxes()
            if text in sb.sandbox_id or text in (sb.name or "")
        ]

    def make_current(self, sandbox_id: str) -> None:
        self.datastore.make_current(sandbox_id)

    def get_all_sandboxes(self) -> List[SandboxRecord]:
        return self.datastore.get_all_records()

    def has_current(self) -> bool:
        return self.datastore.get_current() is not None

    def get_current_sandbox_id(self) -> Optional[str]:
        current = self.datastore.get_current()
        return current.sandbox_id if current else None

    def get_current_sandbox_name(self) -> Optional[str]:
        current = self.datastore.get_current()
        return current.name if current else None

    def get_sandbox_folder(self, sandbox_id: str) -> Path:
        record = self.datastore.get_record(sandbox_id)
        if record is None:
            raise SandboxNotFoundError(f"sandbox-id: {sandbox_id} is not known locally")
        return self.paths.sandboxes / record.folder

    def get_current_sandbox_folder(self) -> Path:
        current = self.datastore.get_current()
        if current is None:
            raise SandboxNotFoundError("There is no current sandbox. Please run 'use' or create a sandbox.")
        return self.paths.sandboxes / current.folder

    def get_sandbox_local_data(self, sandbox_id: str) -> Optional[Dict[str, Any]]:
        record = self.datastore.get_record(sandbox_id)
        if record is None:
            return None
        return {
            "isCurrent": record.current,
            "jwt": record.jwt,
            "sandboxFolder": str(self.paths.sandboxes / record.folder),
        }

    def update_jwt(self, sandbox_id: str, new_jwt: str) -> None:
        """
        Store a rotated JWT in the datastore and in the sandbox config.json.

        Raises:
            SandboxNotFoundError: If the sandbox is not known locally
        """
        record = self.datastore.get_record(sandbox_id)
        if record is None:
            raise SandboxNotFoundError(
                f"Unable to set the new JWT into local configuration for sandbox-id: {sandbox_id}\n"
                f"The new token: {new_jwt}"
            )
        record.jwt = new_jwt
        self.datastore.save(record)
        SandboxConfig(self.paths.sandboxes, record.folder).update_jwt(new_jwt)

    def flush_local_sandbox(self, sandbox_id: str) -> bool:
        """Remove the local folder and record of a sandbox; False if it was not known."""
        if not self.datastore.has_record(sandbox_id):
            return False

        folder_path = self.paths.sandboxes / self.datastore.get_record(sandbox_id).folder
        logger.info(f"Removing local files in {folder_path}")
        if folder_path.exists():
            shutil.rmtree(folder_path)
        self.datastore.delete_record(sandbox_id)
        return True

    def get_local_sandbox_for_identifier(self, identifier: str) -> Optional[SandboxRecord]:
        """
        Find the single local sandbox whose id or name contains identifier.

        Returns:
            The matching record, or None when nothing matches

        Raises:
            ValueError: If more than one local sandbox matches
        """
        results = self.search_local_sandboxes(identifier)
        if len(results) > 1:
            raise ValueError(f"{len(results)} local sandboxes match input. Please be more specific.")
        return results[0] if results else None

    def resolve_sandbox_id(self, identifier: Optional[str]) -> str:
        """
        Map a user supplied identifier to a sandbox id.

        Unmatched identifiers are passed through as remote sandbox ids; a
        missing identifier resolves to the current sandbox.
        """
        if not identifier:
            current_id = self.get_current_sandbox_id()
            if current_id is None:
                raise SandboxNotFoundError("no current sandbox_id. Please specify a sandbox_id.")
            return current_id

        record = self.get_local_sandbox_for_identifier(identifier)
        return record.sandbox_id if record else identifier

    def has_sandbox_folder(self, sandbox_name: str) -> bool:
        wanted = sandbox_name.lower()
        return any(entry.name.lower() == wanted for entry in self.paths.sandboxes.iterdir())

    # Sandbox client runtime

    def find_latest_jar(self) -> Optional[Dict[str, Any]]:
        """Return {"path", "version"} of the newest installed client jar, if any."""
        candidates = []
        for jar_path in self.paths.home.glob(JAR_GLOB):
            match = JAR_VERSION_PATTERN.search(jar_path.name)
            if match:
                candidates.append({"path": jar_path, "version": match.group(1)})

        if not candidates:
            return None
        return max(candidates, key=lambda c: parse_version(c["version"]))

    def is_sandbox_client_installed(self) -> bool:
        return self.find_latest_jar() is not None

    def get_installed_version(self) -> Optional[str]:
        latest_jar = self.find_latest_jar()
        return latest_jar["version"] if latest_jar else None

    def _fetch_release(self) -> Dict[str, Any]:
        if self._cached_release is None:
            logger.debug(f"Fetching latest release info from {self.releases_url}")
            response = self.session.get(self.releases_url, timeout=constants.DEFAULT_TIMEOUT)
            response.raise_for_status()
            self._cached_release = response.json()
        return self._cached_release

    def get_latest_version(self) -> str:
        return self._fetch_release()["tag_name"]

    def is_new_version_available(self) -> bool:
        installed = self.get_installed_version()
        if not installed:
            return True
        return parse_version(self.get_latest_version()) > parse_version(installed)

    def download_client_if_necessary(self) -> Dict[str, Any]:
        """
        Install the sandbox client when missing or outdated.

        Returns:
            Dict with `action` (installed, updated, up_to_date) and `version`
        """
        if not self.is_sandbox_client_installed():
            logger.info("No Sandbox Client found, downloading...")
            return {"action": "installed", **self.download_client()}

        if self.is_new_version_available():
            logger.info("New version of sandbox client is available, downloading...")
            return {"action": "updated", **self.download_client()}

        return {"action": "up_to_date", "version": self.get_installed_version()}

    def download_client(self) -> Dict[str, Any]:
        """
        Download the latest sandbox client release and unzip it into the CLI home.

        Raises:
            SandboxClientError: If the release info or the archive cannot be fetched
        """
        try:
            release = self._fetch_release()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise SandboxClientError(f"Failed to fetch sandbox-client release info from GitHub!\n{e}")

        version = release.get("tag_name")
        asset = next(
            (a for a in release.get("assets", []) if a.get("name", "").endswith(ZIP_ASSET_SUFFIX)),
            None,
        )
        if asset is None:
            raise SandboxClientError(
                "Failed to fetch sandbox-client release info from GitHub!\n"
                "No matching ZIP asset found in latest release"
            )

        zip_url = asset["browser_download_url"]
        dest_path = self.paths.downloads / asset["name"]
        logger.info(f"Latest version: {version}")
        logger.info(f"Downloading from: {zip_url}")

        self.paths.downloads.mkdir(parents=True, exist_ok=True)
        try:
            with self.session.get(zip_url, stream=True, timeout=constants.DEFAULT_TIMEOUT) as response:
                response.raise_for_status()
                with open(dest_path, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=64 * 1024):
                        f.write(chunk)
        except requests.exceptions.RequestException as e:
            raise SandboxClientError(f"Sandbox Client download failed!\n{e}")

        if not dest_path.exists():
            raise SandboxClientError("Sandbox Client download failed for unknown reason!")

        self._unzip_client(dest_path)
        return {"version": version, "path": str(dest_path)}

    def _unzip_client(self, file_path: Path) -> None:
        logger.info(f"Installing {file_path.name} to {self.paths.home}")
        try:
            with zipfile.ZipFile(file_path) as archive:
                archive.extractall(self.paths.home)
        except zipfile.BadZipFile as e:
            raise SandboxClientError(f"Sandbox Client archive {file_path} is corrupt: {e}")

    def find_java_executable(self) -> str:
        java_name = "java.exe" if os.name == "nt" else "java"
        java_home = os.getenv("JAVA_HOME")
        if java_home:
            candidate = Path(java_home) / "bin" / java_name
            if candidate.exists():
                return str(candidate)

        java_path = shutil.which("java")
        if java_path:
            return java_path
        raise SandboxClientError("could not find Java. Please set JAVA_HOME")

    def get_startup_info(self, print_logs: bool = False) -> Dict[str, Any]:
        """
        Build the command line that starts the sandbox client for the current sandbox.

        Raises:
            SandboxNotFoundError: If there is no current sandbox
            SandboxClientError: If the client or Java is not installed
        """
        sandbox_folder = self.get_current_sandbox_folder()
        latest_jar = self.find_latest_jar()
        if latest_jar is None:
            raise SandboxClientError("Sandbox Client is not installed. Please run 'install'.")

        logging_path = sandbox_folder / constants.LOGS_DIR
        config_path = sandbox_folder / constants.CONFIG_FILE
        logging_config_path = latest_jar["path"].parent.parent / "conf" / "logback.xml"

        spring_profiles = [PRINT_LOGS_PROFILE] if print_logs else []

        args = [
            self.find_java_executable(),
            f"-DLOG_PATH={logging_path}",
            f"-DLOGGING_CONFIG_FILE={logging_config_path}",
            "-jar",
            str(latest_jar["path"]),
            f"--config={config_path}",
        ]
        if spring_profiles:
            args.append(f"--spring.profiles.active={','.join(spring_profiles)}")

        return {
            "config_path": str(config_path),
            "logging_path": str(logging_path),
            "logging_file_path": str(logging_path / constants.CLIENT_LOG_FILE),
            "logging_config_path": str(logging_config_path),
            "spring_profiles": spring_profiles,
            "args": args,
        }

    def execute_sandbox_client(self, startup_info: Dict[str, Any]) -> int:
        """
        Run the sandbox client in the foreground until it exits.

        Raises:
            SandboxClientError: If the client exits with a non-zero code
        """
        Path(startup_info["logging_path"]).mkdir(parents=True, exist_ok=True)
        logger.debug(f"Executing: {startup_info['args']}")

        result = subprocess.run(startup_info["args"])
        if result.returncode != 0:
            if PRINT_LOGS_PROFILE in startup_info["spring_profiles"]:
                raise SandboxClientError("Sandbox Client failed to start.")
            raise SandboxClientError(
                "Sandbox Client failed to start. Please check logs for more information "
                "or start client with --print-logs option."
            )
        return result.returncode
