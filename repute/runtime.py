# file: repute/runtime.py
"""
Process-wide setup.

`init()` must run once before any `ReputeClient` is created without explicit
settings. It has no teardown counterpart.
"""

from __future__ import annotations

import logging
import threading

from repute.config import ReputeSettings, load_settings
from repute.logging_config import configure_logging

_lock = threading.Lock()
_settings: ReputeSettings | None = None


def init(settings: ReputeSettings | None = None, *, configure_logs: bool = False) -> ReputeSettings:
    """
    Initialize repute for this process.

    Args:
        settings: Settings to use as process defaults. When omitted, settings
            are loaded with `load_settings()` on the first call and reused on
            later calls.
        configure_logs: Also install root logging from `log_level` and
            `json_logging`. Leave off when the host application owns logging.
    """

    global _settings

    with _lock:
        if settings is not None:
            _settings = settings
        elif _settings is None:
            _settings = load_settings()

        pkg_logger = logging.getLogger("repute")
        if not any(isinstance(h, logging.NullHandler) for h in pkg_logger.handlers):
            pkg_logger.addHandler(logging.NullHandler())

        if configure_logs:
            configure_logging(level=_settings.log_level, json_logging=_settings.json_logging)

        return _settings


def current_settings() -> ReputeSettings | None:
    return _settings
