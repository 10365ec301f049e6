# tests/config/test_pool_config.py
import logging

import pytest

from vpool_core.config.config_loader import ConfigError, PoolConfig
from vpool_core.config.settings import ADDRESS_REGEX, ERA_REGEX, HighlightFormatter, Settings, settings


def test_settings_defaults(monkeypatch):
    for name in (
        "VPOOL_POOL_POLL_INTERVAL_SECONDS",
        "VPOOL_BLOCK_TIME_SECONDS",
        "VPOOL_POOL_MAX_SNAPSHOT_AGE_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)

    fresh = Settings(_env_file=None)

    assert fresh.POOL_POLL_INTERVAL_SECONDS == 30
    assert fresh.POOL_COLLABORATOR_TIMEOUT_SECONDS == 10
    assert fresh.POOL_MAX_SNAPSHOT_AGE_SECONDS is None
    assert fresh.BLOCK_TIME_SECONDS == 6


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("VPOOL_POOL_POLL_INTERVAL_SECONDS", "12.5")
    monkeypatch.setenv("VPOOL_POOL_SYNC_SELECTION_HISTORY", "true")
    monkeypatch.setenv("VPOOL_LOG_LEVEL", "warning")

    fresh = Settings(_env_file=None)

    assert fresh.POOL_POLL_INTERVAL_SECONDS == 12.5
    assert fresh.POOL_SYNC_SELECTION_HISTORY is True
    assert fresh.LOG_LEVEL == "WARNING"


def test_settings_reject_non_positive_interval(monkeypatch):
    monkeypatch.setenv("VPOOL_POOL_POLL_INTERVAL_SECONDS", "0")
    with pytest.raises(ValueError):
        Settings(_env_file=None)


def test_unknown_log_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("VPOOL_LOG_LEVEL", "chatty")
    assert Settings(_env_file=None).LOG_LEVEL == "INFO"


def test_pool_config_defaults_come_from_settings(tmp_path):
    config = PoolConfig(tmp_path)

    assert config.polling.interval_seconds == settings.POOL_POLL_INTERVAL_SECONDS
    assert config.polling.timeout_seconds == settings.POOL_COLLABORATOR_TIMEOUT_SECONDS
    assert config.chain.block_time_seconds == settings.BLOCK_TIME_SECONDS
    assert config.monitoring.metrics_enabled == settings.METRICS_ENABLED


def test_pool_config_reads_yaml(tmp_path):
    (tmp_path / "pool.yaml").write_text(
        "pool:\n"
        "  polling:\n"
        "    interval_seconds: 12\n"
        "    timeout_seconds: 3\n"
        "    max_snapshot_age_seconds: 60\n"
        "    sync_selection_history: true\n"
        "  chain:\n"
        "    block_time_seconds: 12\n"
        "  monitoring:\n"
        "    metrics_enabled: false\n",
        encoding="utf-8",
    )

    config = PoolConfig(tmp_path)

    assert config.polling.interval_seconds == 12
    assert config.polling.timeout_seconds == 3
    assert config.polling.max_snapshot_age_seconds == 60
    assert config.polling.sync_selection_history is True
    assert config.chain.block_time_seconds == 12
    assert config.monitoring.metrics_enabled is False
    assert config.validate_config() is True


def test_pool_config_reload(tmp_path):
    config = PoolConfig(tmp_path)
    (tmp_path / "pool.yaml").write_text("polling:\n  interval_seconds: 45\n", encoding="utf-8")

    config.reload()

    assert config.polling.interval_seconds == 45


@pytest.mark.parametrize(
    "content",
    [
        "polling:\n  interval_seconds: -1\n",
        "chain:\n  block_time_seconds: 0\n",
        "polling: [unclosed\n",
        "- just\n- a list\n",
    ],
)
def test_pool_config_invalid_files(tmp_path, content):
    (tmp_path / "pool.yaml").write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        PoolConfig(tmp_path)


def test_validate_config_flags_inconsistent_values(tmp_path):
    (tmp_path / "pool.yaml").write_text(
        "polling:\n  interval_seconds: 30\n  max_snapshot_age_seconds: 10\n", encoding="utf-8"
    )
    assert PoolConfig(tmp_path).validate_config() is False


def test_validate_config_warns_when_timeout_exceeds_interval(tmp_path, caplog):
    (tmp_path / "pool.yaml").write_text(
        "polling:\n  interval_seconds: 5\n  timeout_seconds: 10\n  max_snapshot_age_seconds: null\n", encoding="utf-8"
    )

    with caplog.at_level(logging.WARNING):
        assert PoolConfig(tmp_path).validate_config() is False

    assert "delays the next poll" in caplog.text
    assert "overlap" not in caplog.text


def test_highlight_patterns():
    assert ERA_REGEX.search("rotated to era 42 at block 9")
    assert ADDRESS_REGEX.search("joined 5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY as stake")
    assert not ADDRESS_REGEX.search("block 1050")


def test_highlight_formatter_colors_eras():
    formatter = HighlightFormatter(fmt="%(message)s")
    record = logging.LogRecord("vpool", logging.INFO, __file__, 1, "Era 7 started", None, None)

    assert "\033[96mEra 7\033[0m" in formatter.format(record)
