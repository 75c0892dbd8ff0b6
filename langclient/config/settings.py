"""
Configuration management for langclient.
Centralizes the server launch settings, client timeouts and logging options.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

DEFAULT_CONFIG_PATH = "~/.langclient/config/system.json"
CONFIG_ENV_VAR = "LANGCLIENT_CONFIG"

DEFAULT_DOCUMENT_SELECTOR = [
    {"scheme": "file", "language": "javascript"},
    {"scheme": "file", "language": "typescript"},
]


@dataclass
class ServerConfig:
    """How to launch the language server."""

    command: str = "rome_lsp"
    transport: str = "stdio"  # Options: "stdio", "pipe", "socket"
    args: List[str] = field(default_factory=list)


@dataclass
class ClientConfig:
    """Language client identity, scope and timeouts."""

    client_id: str = "rome_lsp"
    name: str = "Language Server Rome"
    document_selector: List[Dict[str, str]] = field(
        default_factory=lambda: [dict(f) for f in DEFAULT_DOCUMENT_SELECTOR]
    )

    # Seconds
    handshake_timeout: float = 10.0
    shutdown_timeout: float = 5.0
    connect_timeout: float = 10.0


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"
    logs_dir: str = str(Path.home() / ".langclient" / "logs")


class Config:
    """Main configuration class."""

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration from a JSON file.

        An explicitly given file must exist. When the path comes from the
        environment or the default location and the file is absent, the
        built-in defaults are used.
        """
        explicit = config_file is not None or bool(os.getenv(CONFIG_ENV_VAR))
        self.config_file = os.path.expanduser(
            config_file or os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
        )

        if not os.path.exists(self.config_file):
            if explicit:
                raise ValueError(
                    f"Configuration file not found: {self.config_file}. "
                    f"Create it or unset the {CONFIG_ENV_VAR} environment variable."
                )
            logger.debug(
                f"No configuration file at {self.config_file}, using defaults"
            )
            self._apply({})
            return

        self._load_config()

    def _expand_paths_in_config(self, config_dict: dict) -> dict:
        """Recursively expand tilde paths in configuration dictionary."""
        expanded_config = {}
        for key, value in config_dict.items():
            if isinstance(value, str):
                if value.startswith("~/"):
                    expanded_config[key] = str(Path.home() / value[2:])
                else:
                    expanded_config[key] = value
            elif isinstance(value, dict):
                expanded_config[key] = self._expand_paths_in_config(value)
            else:
                expanded_config[key] = value
        return expanded_config

    def _load_config(self) -> None:
        """Load configuration from JSON file."""
        try:
            with open(self.config_file, "r") as f:
                config_data = json.load(f)
            if not isinstance(config_data, dict):
                raise ValueError("top-level value must be an object")

            config_data = self._expand_paths_in_config(config_data)
            self._apply(config_data)

        except Exception as e:
            raise ValueError(f"Failed to load config file {self.config_file}: {e}")

    def _apply(self, config_data: Dict[str, Any]) -> None:
        self.server = ServerConfig(**config_data.get("server", {}))
        self.client = ClientConfig(**config_data.get("client", {}))
        self.logging = LoggingConfig(**config_data.get("logging", {}))

    def to_dict(self) -> Dict[str, Any]:
        """Return the effective configuration as plain data."""
        return {
            "server": vars(self.server).copy(),
            "client": vars(self.client).copy(),
            "logging": vars(self.logging).copy(),
        }


# Global configuration instance (lazy initialization)
_config_instance = None


def get_config(force_reload: bool = False, config_file: Optional[str] = None) -> Config:
    """Get the global configuration instance."""
    global _config_instance
    if _config_instance is None or force_reload or config_file is not None:
        _config_instance = Config(config_file)
    return _config_instance


def reload_config() -> None:
    """Reload the configuration by resetting the global instance."""
    global _config_instance
    _config_instance = None
    get_config(force_reload=True)


class _ConfigProxy:
    def __getattr__(self, name):
        return getattr(get_config(), name)


config = _ConfigProxy()
