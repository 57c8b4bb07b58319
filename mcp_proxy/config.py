"""
Proxy configuration.

Server settings come from the environment (a local .env is loaded first).
Backends come from a JSON settings document in the Claude desktop format:

    {"mcpServers": {"<name>": {"command": "...", "args": [...], "env": {...}}}}
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

from .base import SettingsError

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_API_KEY = "CHANGE_ME"
DEFAULT_SETTINGS_FILE = "mcp_settings.json"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class BackendConfig(BaseModel):
    """Startup command for one MCP server."""

    command: str
    args: List[str] = []
    env: Optional[Dict[str, str]] = None


class BackendSettings(BaseModel):
    """Parsed settings document. Server order is preserved."""

    mcpServers: Dict[str, BackendConfig] = {}


class ProxySettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    api_key: str = DEFAULT_API_KEY
    settings_path: Path = Path(DEFAULT_SETTINGS_FILE)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
        return value

    @classmethod
    def from_env(cls) -> "ProxySettings":
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            api_key=os.getenv("API_KEY", DEFAULT_API_KEY),
            settings_path=Path(os.getenv("MCP_SETTINGS_PATH", DEFAULT_SETTINGS_FILE)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def uses_default_api_key(self) -> bool:
        return self.api_key == DEFAULT_API_KEY


def parse_backend_settings(raw: str) -> BackendSettings:
    """Parse a settings document. Raises SettingsError when unusable."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SettingsError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SettingsError("Settings document must be a JSON object")
    if data.get("mcpServers") is None:
        data["mcpServers"] = {}

    try:
        return BackendSettings(**data)
    except ValidationError as e:
        raise SettingsError(f"Invalid MCP server configuration: {e}") from e


def load_backend_settings(path: Path) -> BackendSettings:
    """
    Load backend settings from disk.

    A missing or broken file yields empty settings so the proxy still starts
    (with no tools).
    """
    if not path.exists():
        logger.warning(f"Settings file not found. Expected at: {path}")
        logger.info(f"Copy {DEFAULT_SETTINGS_FILE}.example to {DEFAULT_SETTINGS_FILE} to configure MCP servers")
        return BackendSettings()

    logger.info(f"Loading MCP settings from: {path}")
    try:
        settings = parse_backend_settings(path.read_text(encoding="utf-8"))
    except (OSError, SettingsError) as e:
        logger.error(f"Failed to load settings: {e}")
        logger.info(f"Please check your {path.name} file for syntax errors")
        return BackendSettings()

    if not settings.mcpServers:
        logger.warning("No MCP servers configured in settings")
    else:
        logger.info(f"Settings loaded successfully ({len(settings.mcpServers)} servers)")
    return settings
