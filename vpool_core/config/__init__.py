from .settings import settings, configure_logging
from .config_loader import ConfigError, PoolConfig, get_config, reload_config

__all__ = [
    "settings",
    "configure_logging",
    "ConfigError",
    "PoolConfig",
    "get_config",
    "reload_config",
]
