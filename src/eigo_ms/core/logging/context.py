"""
Request context and shared logging state.

The request id lives in a ContextVar so it follows a request across
threads started with contextvars.copy_context() and across awaits.
Everything else here is process-wide configuration state.

Environment variables:
    - EIGO_MS_LOG_LEVEL: level override (1-4 or name)
    - EIGO_MS_LOG_DIR: directory for the JSONL log file
    - EIGO_MS_JSONL_FILE: JSONL filename
    - EIGO_MS_LOG_ROTATE_BYTES: rotation threshold
    - EIGO_MS_LOG_ROTATE_BACKUP: rotated files to keep
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict

import yaml

from .levels import LEVEL_NAMES, LogLevel

_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_log_config: Dict[str, Any] = {}
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    """Request id of the current context, "-" outside a request."""
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """Bind a request id to the current context."""
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    return LEVEL_NAMES.get(_current_level, "NORMAL")


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def get_log_config() -> Dict[str, Any]:
    return _log_config


def set_log_config(config: Dict[str, Any]) -> None:
    global _log_config
    _log_config = config


def _int_env(name: str) -> int | None:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def read_logging_config() -> Dict[str, Any]:
    """
    Resolve the logging section from settings.yaml plus env overrides.

    A missing or unreadable settings file leaves the defaults in place;
    the service still starts and logs to the console.
    """
    cfg: Dict[str, Any] = {}

    settings_path = os.getenv("EIGO_MS_SETTINGS", "config/settings.yaml")
    from eigo_ms.core.config import load_settings
    try:
        settings = load_settings(settings_path)
    except (FileNotFoundError, yaml.YAMLError):
        settings = None
    if settings is not None:
        cfg.update(settings.raw.get("logging", {}) or {})

    if os.getenv("EIGO_MS_LOG_LEVEL"):
        cfg["level"] = os.environ["EIGO_MS_LOG_LEVEL"]
    if os.getenv("EIGO_MS_LOG_DIR"):
        cfg["log_dir"] = os.environ["EIGO_MS_LOG_DIR"]
    if os.getenv("EIGO_MS_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["EIGO_MS_JSONL_FILE"]

    rotate_bytes = _int_env("EIGO_MS_LOG_ROTATE_BYTES")
    if rotate_bytes is not None:
        cfg["rotate_max_bytes"] = rotate_bytes
    rotate_backup = _int_env("EIGO_MS_LOG_ROTATE_BACKUP")
    if rotate_backup is not None:
        cfg["rotate_backup_count"] = rotate_backup

    return cfg
