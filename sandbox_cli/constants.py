CLI_CACHE_PATH_ENV = "AKAMAI_CLI_CACHE_PATH"
EDGERC_PATH_ENV = "AKAMAI_EDGERC"
EDGERC_SECTION_ENV = "AKAMAI_EDGERC_SECTION"
RELEASES_URL_ENV = "SANDBOX_CLIENT_RELEASES_URL"

DEFAULT_EDGERC_SECTION = "default"
DEFAULT_RELEASES_URL = "https://api.github.com/repos/akamai/sandbox-client/releases/latest"

API_BASE_PATH = "/devpops-api/v1"
USER_AGENT = "sandbox-cli"

CLI_HOME_DIR = "sandbox-cli"
DOWNLOADS_DIR = "downloads"
SANDBOXES_DIR = "sandboxes"
DATASTORE_FILE = ".datastore"
CONFIG_FILE = "config.json"
LOGS_DIR = "logs"
CLIENT_LOG_FILE = "sandbox-client.log"

PASS_THROUGH = "pass-through"
ORIGIN_PLACEHOLDER = "<ORIGIN HOSTNAME>"
TARGET_HOST_PLACEHOLDER = "<target hostname>"

DEFAULT_TIMEOUT = 60  # seconds
DEFAULT_CONNECT_TIMEOUT = 10.0  # seconds
