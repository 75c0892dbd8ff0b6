from .settings import (
    ClientConfig,
    Config,
    LoggingConfig,
    ServerConfig,
    config,
    get_config,
    reload_config,
)

__all__ = [
    "Config",
    "ServerConfig",
    "ClientConfig",
    "LoggingConfig",
    "config",
    "get_config",
    "reload_config",
]
