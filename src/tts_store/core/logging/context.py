"""
Request Context and Configuration State for Logging.

The request ID lives in a ContextVar so concurrent requests (threads in the
FastAPI worker pool, or asyncio tasks) never see each other's IDs. The log
level and resolved logging configuration are process-wide.

Environment Variables:
    - TTS_STORE_LOG_LEVEL: Override log level (1-4 or name)
    - TTS_STORE_LOG_DIR: Directory for the JSONL log file
    - TTS_STORE_JSONL_FILE: JSONL filename
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict

from .levels import LEVEL_NAMES, LogLevel

# "-" outside of a request
_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_log_config: Dict[str, Any] = {}
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    """Get current request ID from context ("-" if not set)."""
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """Set request ID in context for log correlation."""
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    """Get current log level as a name ("MINIMAL", "NORMAL", ...)."""
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


def read_logging_config() -> Dict[str, Any]:
    """
    Read logging configuration from settings and environment.

    Priority (highest first):
        1. Environment variables (TTS_STORE_LOG_LEVEL, ...)
        2. logging section of the settings file
        3. Defaults

    Returns:
        Dictionary with resolved logging configuration.
    """
    from tts_store.core.config import ConfigValidationError, load_settings_or_env

    cfg: Dict[str, Any] = {}
    try:
        settings = load_settings_or_env()
        cfg.update(settings.raw.get("logging", {}) or {})
    except (OSError, ConfigValidationError):
        # Unreadable or malformed settings file: fall back to defaults here,
        # the service reports the real error when it loads its config.
        pass

    if os.getenv("TTS_STORE_LOG_LEVEL"):
        cfg["level"] = os.environ["TTS_STORE_LOG_LEVEL"]
    if os.getenv("TTS_STORE_LOG_DIR"):
        cfg["log_dir"] = os.environ["TTS_STORE_LOG_DIR"]
    if os.getenv("TTS_STORE_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["TTS_STORE_JSONL_FILE"]

    return cfg
