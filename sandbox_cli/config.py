"""
Configuration module for sandbox-cli.

Resolves the local cache layout and the EdgeGrid credentials used for API
calls from environment variables (optionally loaded from a .env file).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from sandbox_cli import constants
from sandbox_cli.exceptions import ConfigurationError


# Load environment variables from .env file
load_dotenv()


def get_cli_cache_path() -> Optional[str]:
    """Return the Akamai CLI cache directory, if configured."""
    return os.getenv(constants.CLI_CACHE_PATH_ENV)


def get_edgerc_path() -> str:
    """
    Get the .edgerc location from environment or return default

    Returns:
        Path to the .edgerc file, with ~ expanded
    """
    return os.path.expanduser(os.getenv(constants.EDGERC_PATH_ENV, "~/.edgerc"))


def get_edgerc_section() -> str:
    return os.getenv(constants.EDGERC_SECTION_ENV, constants.DEFAULT_EDGERC_SECTION)


def get_releases_url() -> str:
    return os.getenv(constants.RELEASES_URL_ENV, constants.DEFAULT_RELEASES_URL)


@dataclass
class CliPaths:
    """Filesystem layout of the sandbox-cli cache."""
    home: Path
    downloads: Path
    sandboxes: Path
    datastore_file: Path

    @classmethod
    def from_cache_path(cls, cache_path: Optional[str] = None) -> "CliPaths":
        """
        Build the layout below the CLI cache directory.

        Raises:
            ConfigurationError: If the cache path is unset or does not exist
        """
        cache_path = cache_path or get_cli_cache_path()
        if not cache_path:
            raise ConfigurationError(f"{constants.CLI_CACHE_PATH_ENV} is not set.")
        if not os.path.isdir(cache_path):
            raise ConfigurationError(
                f"{constants.CLI_CACHE_PATH_ENV} is set to {cache_path} but this directory does not exist."
            )

        home = Path(cache_path) / constants.CLI_HOME_DIR
        return cls(
            home=home,
            downloads=home / constants.DOWNLOADS_DIR,
            sandboxes=home / constants.SANDBOXES_DIR,
            datastore_file=home / constants.DATASTORE_FILE,
        )

    def ensure(self) -> "CliPaths":
        self.downloads.mkdir(parents=True, exist_ok=True)
        self.sandboxes.mkdir(parents=True, exist_ok=True)
        return self


@dataclass
class EdgeRcSettings:
    """Credentials and request options shared by every API call of one CLI run."""
    path: str = field(default_factory=get_edgerc_path)
    section: str = field(default_factory=get_edgerc_section)
    account_key: Optional[str] = None
    debug: bool = False

    def validate(self) -> None:
        if not os.path.exists(self.path):
            raise ConfigurationError(
                f"Could not find .edgerc to authenticate Akamai API calls. Expected at: {self.path}"
            )
