"""
GoodDay MCP Configuration — Unified settings for the MCP server

Load order: env vars > ~/.goodday-mcp/config.env > defaults
"""

import os
from pathlib import Path


class ConfigurationError(Exception):
    """Required configuration is missing or invalid."""


def _config_env_path() -> Path:
    data_dir = os.environ.get("GOODDAY_DATA_DIR", str(Path.home() / ".goodday-mcp"))
    return Path(data_dir) / "config.env"


def load_config_env(config_file: Path = None):
    """Load key=value pairs from config.env if it exists. Env vars win."""
    config_file = config_file or _config_env_path()
    if not config_file.exists():
        return
    for line in config_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


# Load config.env before reading env vars
load_config_env()


class Config:
    # Server identity
    SERVER_NAME = "goodday-mcp"
    SERVER_VERSION = "0.1.0"
    PROTOCOL_VERSION = "2024-11-05"

    # Remote API
    DEFAULT_API_URL = "https://api.goodday.work/2.0"
    API_URL = os.environ.get("GOODDAY_API_URL") or DEFAULT_API_URL
    API_KEY = os.environ.get("GOODDAY_API_KEY", "")
    API_KEY_HEADER = "gd-api-token"
    REQUEST_TIMEOUT = 30.0

    # Source user recorded as creator of new tasks when the caller gives none
    DEFAULT_FROM_USER = os.environ.get("GOODDAY_DEFAULT_FROM_USER", "pqj4fL")

    # Paths
    DATA_DIR = Path(os.environ.get("GOODDAY_DATA_DIR", str(Path.home() / ".goodday-mcp")))
    LOG_DIR = DATA_DIR / "logs"

    # Logging (NEVER to stdout — would corrupt MCP protocol)
    LOG_LEVEL = os.environ.get("GOODDAY_LOG_LEVEL", "INFO").upper()
    LOG_FILE = LOG_DIR / "goodday-mcp.log"
    ERROR_LOG = LOG_DIR / "goodday-mcp-errors.log"

    @classmethod
    def ensure_dirs(cls):
        """Create required directories."""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def require_api_key(cls) -> str:
        """Return the API key, re-reading the environment if it was set late."""
        api_key = cls.API_KEY or os.environ.get("GOODDAY_API_KEY", "")
        if not api_key:
            raise ConfigurationError("GOODDAY_API_KEY environment variable is required")
        return api_key
