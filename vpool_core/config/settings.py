# vpool_core/config/settings.py

import logging
import re
from typing import Optional

import coloredlogs
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ANSI color codes
CYAN = "\033[96m"
YELLOW = "\033[93m"
RESET = "\033[0m"

# SS58 account addresses (base58, 46-48 chars) or 0x-prefixed hex addresses/hashes
ADDRESS_REGEX = re.compile(r"(\b[1-9A-HJ-NP-Za-km-z]{46,48}\b|\b0x[a-fA-F0-9]{40,64}\b)")
ERA_REGEX = re.compile(r"(\bera \d+\b)", re.IGNORECASE)


class HighlightFormatter(coloredlogs.ColoredFormatter):
    """Formatter that highlights account addresses and era numbers."""

    def format(self, record):
        formatted_message = super().format(record)
        formatted_message = ERA_REGEX.sub(f"{CYAN}\\1{RESET}", formatted_message)
        formatted_message = ADDRESS_REGEX.sub(f"{YELLOW}\\1{RESET}", formatted_message)
        return formatted_message


class Settings(BaseSettings):
    """
    Central configuration for the validator pool, loaded from environment
    variables (prefix VPOOL_) or a .env file.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VPOOL_",
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # --- Polling ---
    POOL_POLL_INTERVAL_SECONDS: float = Field(
        default=30.0,
        description="Seconds between two hydrations of the pool registry.",
    )
    POOL_COLLABORATOR_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout applied to every call made to the chain state provider.",
    )
    POOL_MAX_SNAPSHOT_AGE_SECONDS: Optional[float] = Field(
        default=None,
        description="Report the registry stale once its snapshot is older than this. None disables the check.",
    )
    POOL_SYNC_SELECTION_HISTORY: bool = Field(
        default=False,
        description="Merge each member's chain-reported selection history after every poll.",
    )

    # --- Chain ---
    BLOCK_TIME_SECONDS: int = Field(
        default=6,
        description="Target block time, used to turn block counts into durations.",
    )

    # --- Monitoring ---
    METRICS_ENABLED: bool = Field(
        default=True,
        description="Record Prometheus metrics for hydrations and intents.",
    )

    @field_validator("POOL_POLL_INTERVAL_SECONDS", "POOL_COLLABORATOR_TIMEOUT_SECONDS", "BLOCK_TIME_SECONDS")
    @classmethod
    def validate_positive(cls, value):
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("POOL_MAX_SNAPSHOT_AGE_SECONDS")
    @classmethod
    def validate_snapshot_age(cls, value):
        if value is not None and value <= 0:
            raise ValueError("must be greater than zero when set")
        return value

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, value):
        value_str = str(value).strip().upper()
        if value_str not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            return "INFO"
        return value_str


settings = Settings()

if (
    settings.POOL_MAX_SNAPSHOT_AGE_SECONDS is not None
    and settings.POOL_MAX_SNAPSHOT_AGE_SECONDS < settings.POOL_POLL_INTERVAL_SECONDS
):
    logging.warning(
        f"POOL_MAX_SNAPSHOT_AGE_SECONDS ({settings.POOL_MAX_SNAPSHOT_AGE_SECONDS}) is shorter than "
        f"POOL_POLL_INTERVAL_SECONDS ({settings.POOL_POLL_INTERVAL_SECONDS}); snapshots will be reported stale between polls."
    )

# --- LOGGING CONFIGURATION ---
DEFAULT_LEVEL_STYLES = {
    "debug": {"color": "green"},
    "info": {"color": "cyan"},
    "warning": {"color": "yellow"},
    "error": {"color": "red"},
    "critical": {"bold": True, "color": "red"},
}
DEFAULT_FIELD_STYLES = {
    "asctime": {"color": "magenta"},
    "levelname": {"bold": True, "color": "blue"},
    "name": {"color": "white"},
}
DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install coloredlogs on the root logger with the highlight formatter."""
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    coloredlogs.install(
        level=log_level,
        fmt=DEFAULT_FMT,
        level_styles=DEFAULT_LEVEL_STYLES,
        field_styles=DEFAULT_FIELD_STYLES,
        reconfigure=True,
    )
    # coloredlogs only colors tty streams; swap in the highlighter where it did.
    for handler in logging.getLogger().handlers:
        if isinstance(handler.formatter, coloredlogs.ColoredFormatter):
            handler.setFormatter(
                HighlightFormatter(
                    fmt=DEFAULT_FMT,
                    level_styles=DEFAULT_LEVEL_STYLES,
                    field_styles=DEFAULT_FIELD_STYLES,
                )
            )


configure_logging()

logger = logging.getLogger(__name__)
logger.debug(f"Settings loaded. Log level set to {settings.LOG_LEVEL}.")
