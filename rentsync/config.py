from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path("~/.config/rentsync/config.json").expanduser()

CONFIG_ENV_OVERRIDES = {
    "db_path": "RENTSYNC_DB_PATH",
    "catalog_path": "RENTSYNC_CATALOG_PATH",
    "cache_ttl_ms": "RENTSYNC_CACHE_TTL_MS",
    "bookmark_retention_days": "RENTSYNC_BOOKMARK_RETENTION_DAYS",
    "session_timeout_s": "RENTSYNC_SESSION_TIMEOUT_S",
    "guest_reuse_window_s": "RENTSYNC_GUEST_REUSE_WINDOW_S",
    "watch_interval_s": "RENTSYNC_WATCH_INTERVAL_S",
    "max_value_bytes": "RENTSYNC_MAX_VALUE_BYTES",
    "max_record_bytes": "RENTSYNC_MAX_RECORD_BYTES",
    "change_log_limit": "RENTSYNC_CHANGE_LOG_LIMIT",
    "log_level": "RENTSYNC_LOG_LEVEL",
}

_INT_KEYS = {
    "cache_ttl_ms",
    "bookmark_retention_days",
    "session_timeout_s",
    "guest_reuse_window_s",
    "max_value_bytes",
    "max_record_bytes",
    "change_log_limit",
}
_FLOAT_KEYS = {"watch_interval_s"}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("RENTSYNC_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def write_config_file(data: dict[str, Any], path: Path | None = None) -> Path:
    config_path = get_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n")
    return config_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in CONFIG_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class RentsyncConfig:
    db_path: str = "~/.rentsync.sqlite"
    catalog_path: str | None = None
    # Collapses bursts of reads within one rendering pass; never serves stale data beyond it.
    cache_ttl_ms: int = 100
    bookmark_retention_days: int = 30
    session_timeout_s: int = 30 * 60
    guest_reuse_window_s: int = 5 * 60
    watch_interval_s: float = 1.0
    max_value_bytes: int = 5_000_000
    max_record_bytes: int = 5_000_000
    change_log_limit: int = 1000
    log_level: str = "WARNING"


def _parse_int(value: object, default: int, *, key: str) -> int:
    if value is None:
        return default
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def _parse_float(value: object, default: float, *, key: str) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    if parsed <= 0:
        warnings.warn(f"Invalid float for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    return parsed


def load_config(path: Path | None = None) -> RentsyncConfig:
    cfg = RentsyncConfig()
    config_path = get_config_path(path)
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
        except json.JSONDecodeError as exc:
            warnings.warn(
                f"Invalid config file {config_path}: {exc}", RuntimeWarning, stacklevel=2
            )
            data = {}
        if isinstance(data, dict):
            cfg = _apply_dict(cfg, data)
    cfg = _apply_dict(cfg, get_env_overrides())
    return cfg


def _apply_dict(cfg: RentsyncConfig, data: dict[str, Any]) -> RentsyncConfig:
    for key, value in data.items():
        if not hasattr(cfg, key):
            continue
        if key in _INT_KEYS:
            setattr(cfg, key, _parse_int(value, getattr(cfg, key), key=key))
            continue
        if key in _FLOAT_KEYS:
            setattr(cfg, key, _parse_float(value, getattr(cfg, key), key=key))
            continue
        if key == "catalog_path":
            text = str(value).strip() if value is not None else ""
            cfg.catalog_path = text or None
            continue
        if key == "log_level":
            cfg.log_level = str(value).strip().upper() or cfg.log_level
            continue
        setattr(cfg, key, str(value))
    return cfg
