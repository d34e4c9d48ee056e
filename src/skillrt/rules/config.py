"""RuntimeConfig dataclass and loader for runtime settings."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from skillrt.session.config import (
    ACTIVATION_MAX_AGE_MS,
    CLEANUP_INTERVAL,
    DEFAULT_CACHE_DIR,
    LOCK_TIMEOUT_SEC,
    SESSION_MAX_AGE_MS,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".skillrt.json"


def _safe_float(value: str, default: float) -> float:
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class RuntimeConfig:
    cache_dir: str = DEFAULT_CACHE_DIR
    lock_timeout_sec: float = LOCK_TIMEOUT_SEC
    cleanup_interval: int = CLEANUP_INTERVAL
    session_max_age_ms: int = SESSION_MAX_AGE_MS
    activation_max_age_ms: int = ACTIVATION_MAX_AGE_MS
    debug: bool = False

    def cache_path(self, project_dir: Path) -> Path:
        path = Path(self.cache_dir)
        return path if path.is_absolute() else project_dir / path


def load_runtime_config(path: Path | None = None) -> RuntimeConfig:
    """Load runtime config from the `runtime` section of .skillrt.json."""
    config = RuntimeConfig()
    if path and path.exists():
        try:
            text = path.read_text()
            if text.strip():
                data = json.loads(text)
                section = data.get("runtime", {}) if isinstance(data, dict) else {}
                if isinstance(section, dict):
                    _apply(config, section)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load runtime config from {path}: {e}")

    if env_dir := os.environ.get("SKILLRT_CACHE_DIR"):
        config.cache_dir = env_dir
    if env_timeout := os.environ.get("SKILLRT_LOCK_TIMEOUT"):
        config.lock_timeout_sec = _safe_float(env_timeout, config.lock_timeout_sec)
    if env_debug := os.environ.get("SKILLRT_DEBUG"):
        config.debug = env_debug.lower() in ("true", "1", "yes")
    return config


def _apply(cfg: RuntimeConfig, data: dict[str, object]) -> None:
    if isinstance(data.get("cache_dir"), str):
        cfg.cache_dir = data["cache_dir"]  # type: ignore[assignment]
    timeout = data.get("lock_timeout_sec")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) and timeout > 0:
        cfg.lock_timeout_sec = float(timeout)
    interval = data.get("cleanup_interval")
    if isinstance(interval, int) and not isinstance(interval, bool) and interval > 0:
        cfg.cleanup_interval = interval
    hours = data.get("session_max_age_hours")
    if isinstance(hours, (int, float)) and not isinstance(hours, bool) and hours > 0:
        cfg.session_max_age_ms = int(hours * 3_600_000)
    minutes = data.get("activation_max_age_minutes")
    if isinstance(minutes, (int, float)) and not isinstance(minutes, bool) and minutes > 0:
        cfg.activation_max_age_ms = int(minutes * 60_000)
    if isinstance(data.get("debug"), bool):
        cfg.debug = data["debug"]  # type: ignore[assignment]
