"""
Configuration loader for the validator pool
Loads an optional pool.yaml on top of the environment settings
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .settings import settings

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "pool.yaml"


class ConfigError(Exception):
    """Configuration loading error"""

    pass


class PollingConfig(BaseModel):
    """Registry polling configuration"""

    interval_seconds: float = Field(default_factory=lambda: settings.POOL_POLL_INTERVAL_SECONDS)
    timeout_seconds: float = Field(default_factory=lambda: settings.POOL_COLLABORATOR_TIMEOUT_SECONDS)
    max_snapshot_age_seconds: Optional[float] = Field(
        default_factory=lambda: settings.POOL_MAX_SNAPSHOT_AGE_SECONDS
    )
    sync_selection_history: bool = Field(default_factory=lambda: settings.POOL_SYNC_SELECTION_HISTORY)

    @field_validator("interval_seconds", "timeout_seconds")
    @classmethod
    def validate_positive(cls, value):
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value


class ChainConfig(BaseModel):
    """Chain timing configuration"""

    block_time_seconds: int = Field(default_factory=lambda: settings.BLOCK_TIME_SECONDS)

    @field_validator("block_time_seconds")
    @classmethod
    def validate_block_time(cls, value):
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value


class MonitoringConfig(BaseModel):
    """Metrics configuration"""

    metrics_enabled: bool = Field(default_factory=lambda: settings.METRICS_ENABLED)


class PoolConfig:
    """Main configuration manager"""

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        self.config_dir = Path(config_dir) if config_dir is not None else Path.cwd()
        self._polling: Optional[PollingConfig] = None
        self._chain: Optional[ChainConfig] = None
        self._monitoring: Optional[MonitoringConfig] = None

        self._load_configs()

    def _load_yaml_file(self, filename: str) -> Dict[str, Any]:
        """Load YAML configuration file"""
        file_path = self.config_dir / filename

        if not file_path.exists():
            logger.debug(f"Config file not found: {file_path}, using settings defaults")
            return {}

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading config {filename}: {e}")
            raise ConfigError(f"Failed to load {filename}: {e}") from e

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigError(f"{filename} must contain a mapping at the top level")
        logger.info(f"Loaded config: {file_path}")
        return config

    def _load_configs(self):
        """Load pool.yaml and build the section models"""
        data = self._load_yaml_file(CONFIG_FILENAME)
        pool_data = data.get("pool", data) or {}
        if not isinstance(pool_data, dict):
            raise ConfigError(f"'pool' section of {CONFIG_FILENAME} must be a mapping")

        try:
            self._polling = PollingConfig(**(pool_data.get("polling") or {}))
            self._chain = ChainConfig(**(pool_data.get("chain") or {}))
            self._monitoring = MonitoringConfig(**(pool_data.get("monitoring") or {}))
        except ValidationError as e:
            logger.error(f"Invalid pool configuration: {e}")
            raise ConfigError(f"Configuration loading failed: {e}") from e

    @property
    def polling(self) -> PollingConfig:
        """Get polling configuration"""
        if self._polling is None:
            self._polling = PollingConfig()
        return self._polling

    @property
    def chain(self) -> ChainConfig:
        """Get chain configuration"""
        if self._chain is None:
            self._chain = ChainConfig()
        return self._chain

    @property
    def monitoring(self) -> MonitoringConfig:
        """Get monitoring configuration"""
        if self._monitoring is None:
            self._monitoring = MonitoringConfig()
        return self._monitoring

    def validate_config(self) -> bool:
        """Cross-field checks that single-field validators cannot express"""
        max_age = self.polling.max_snapshot_age_seconds
        if max_age is not None and max_age < self.polling.interval_seconds:
            logger.warning(
                f"max_snapshot_age_seconds ({max_age}) is shorter than the poll interval "
                f"({self.polling.interval_seconds})"
            )
            return False
        if self.polling.timeout_seconds > self.polling.interval_seconds:
            logger.warning(
                f"Collaborator timeout ({self.polling.timeout_seconds}s) exceeds the poll interval "
                f"({self.polling.interval_seconds}s); a hung call delays the next poll beyond the interval"
            )
            return False
        return True

    def reload(self):
        """Reload all configurations"""
        logger.info("Reloading pool configuration...")
        self._load_configs()


# Global instance
_config_instance: Optional[PoolConfig] = None


def get_config(config_dir: Optional[Union[str, Path]] = None) -> PoolConfig:
    """Get the global configuration instance"""
    global _config_instance

    if _config_instance is None:
        _config_instance = PoolConfig(config_dir)

    return _config_instance


def reload_config():
    """Reload the global configuration"""
    global _config_instance

    if _config_instance is not None:
        _config_instance.reload()
    else:
        _config_instance = PoolConfig()
