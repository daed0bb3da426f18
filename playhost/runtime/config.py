"""Runtime configuration sourced from environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip()
    return value if value else default


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """Immutable runtime configuration."""

    app_data_dir: str = "appdata"
    failure_log_enabled: bool = True
    restart_offer_delay_seconds: float = 3.0
    recent_failures_limit: int = 10
    viewport_width: int = 400
    viewport_height: int = 600
    diagnostics_capacity: int = 2_000
    log_level: str = "INFO"
    log_format: str = "text"
    log_file: str | None = None


def resolve_log_level_name(default: str = "INFO") -> str:
    """Resolve log level with package-prefixed override."""
    value = os.getenv("PLAYHOST_LOG_LEVEL")
    if value is None:
        value = os.getenv("LOG_LEVEL", default)
    return value.strip().upper()


def load_runtime_config() -> RuntimeConfig:
    """Load immutable runtime configuration from env vars."""
    width, height = _parse_viewport(_str("PLAYHOST_VIEWPORT", "400x600"), fallback=(400, 600))
    log_file = os.getenv("PLAYHOST_LOG_FILE", "").strip() or None
    return RuntimeConfig(
        app_data_dir=_str("PLAYHOST_APP_DATA_DIR", "appdata"),
        failure_log_enabled=_flag("PLAYHOST_FAILURE_LOG_ENABLED", True),
        restart_offer_delay_seconds=max(0.0, _float("PLAYHOST_RESTART_OFFER_DELAY", 3.0)),
        recent_failures_limit=max(1, _int("PLAYHOST_RECENT_FAILURES", 10)),
        viewport_width=width,
        viewport_height=height,
        diagnostics_capacity=max(100, _int("PLAYHOST_DIAGNOSTICS_CAP", 2_000)),
        log_level=resolve_log_level_name(),
        log_format=_str("PLAYHOST_LOG_FORMAT", "text").lower(),
        log_file=log_file,
    )


def resolve_app_data_root(config: RuntimeConfig) -> Path:
    """Resolve app-data root; relative paths are taken from the working directory."""
    return Path(config.app_data_dir).expanduser()


def resolve_storage_dir(config: RuntimeConfig) -> Path:
    return resolve_app_data_root(config) / "storage"


def load_env_file(path: str = ".env.playhost", *, override_existing: bool = True) -> None:
    """Load KEY=VALUE pairs from an env file into process environment.

    By default, values from the env file overwrite existing environment variables.
    """
    env_path = Path(path)
    if not env_path.exists():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue

        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]

        if override_existing or key not in os.environ:
            os.environ[key] = value


def _parse_viewport(raw: str, *, fallback: tuple[int, int]) -> tuple[int, int]:
    parts = raw.lower().split("x", 1)
    if len(parts) != 2:
        return fallback
    try:
        width, height = int(parts[0].strip()), int(parts[1].strip())
    except ValueError:
        return fallback
    if width <= 0 or height <= 0:
        return fallback
    return width, height
