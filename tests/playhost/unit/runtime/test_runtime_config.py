from __future__ import annotations

import os
from pathlib import Path

from playhost.runtime.config import (
    load_env_file,
    load_runtime_config,
    resolve_log_level_name,
    resolve_storage_dir,
)

_VARS = (
    "PLAYHOST_APP_DATA_DIR",
    "PLAYHOST_FAILURE_LOG_ENABLED",
    "PLAYHOST_RESTART_OFFER_DELAY",
    "PLAYHOST_RECENT_FAILURES",
    "PLAYHOST_VIEWPORT",
    "PLAYHOST_DIAGNOSTICS_CAP",
    "PLAYHOST_LOG_LEVEL",
    "LOG_LEVEL",
    "PLAYHOST_LOG_FORMAT",
    "PLAYHOST_LOG_FILE",
)


def _clear(monkeypatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_environment(monkeypatch) -> None:
    _clear(monkeypatch)
    config = load_runtime_config()
    assert config.app_data_dir == "appdata"
    assert config.failure_log_enabled is True
    assert config.restart_offer_delay_seconds == 3.0
    assert config.recent_failures_limit == 10
    assert (config.viewport_width, config.viewport_height) == (400, 600)
    assert config.log_level == "INFO"
    assert config.log_file is None


def test_environment_overrides(monkeypatch) -> None:
    _clear(monkeypatch)
    monkeypatch.setenv("PLAYHOST_FAILURE_LOG_ENABLED", "0")
    monkeypatch.setenv("PLAYHOST_RESTART_OFFER_DELAY", "1.5")
    monkeypatch.setenv("PLAYHOST_VIEWPORT", "320x480")
    monkeypatch.setenv("PLAYHOST_LOG_FORMAT", "JSON")
    monkeypatch.setenv("PLAYHOST_APP_DATA_DIR", "/tmp/playhost-data")
    config = load_runtime_config()

    assert config.failure_log_enabled is False
    assert config.restart_offer_delay_seconds == 1.5
    assert (config.viewport_width, config.viewport_height) == (320, 480)
    assert config.log_format == "json"
    assert resolve_storage_dir(config) == Path("/tmp/playhost-data") / "storage"


def test_malformed_values_fall_back(monkeypatch) -> None:
    _clear(monkeypatch)
    monkeypatch.setenv("PLAYHOST_VIEWPORT", "wide")
    monkeypatch.setenv("PLAYHOST_RECENT_FAILURES", "many")
    monkeypatch.setenv("PLAYHOST_RESTART_OFFER_DELAY", "-4")
    config = load_runtime_config()

    assert (config.viewport_width, config.viewport_height) == (400, 600)
    assert config.recent_failures_limit == 10
    assert config.restart_offer_delay_seconds == 0.0


def test_package_log_level_wins_over_generic(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.delenv("PLAYHOST_LOG_LEVEL", raising=False)
    assert resolve_log_level_name() == "WARNING"
    monkeypatch.setenv("PLAYHOST_LOG_LEVEL", "debug")
    assert resolve_log_level_name() == "DEBUG"


def test_load_env_file_respects_existing_values(tmp_path, monkeypatch) -> None:
    env_file = tmp_path / ".env.playhost"
    env_file.write_text(
        "# comment\nPLAYHOST_VIEWPORT='200x300'\nPLAYHOST_LOG_LEVEL=ERROR\nbroken line\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("PLAYHOST_LOG_LEVEL", "INFO")
    monkeypatch.delenv("PLAYHOST_VIEWPORT", raising=False)

    load_env_file(str(env_file), override_existing=False)

    assert os.environ["PLAYHOST_VIEWPORT"] == "200x300"
    assert os.environ["PLAYHOST_LOG_LEVEL"] == "INFO"
