# file: repute/logging_config.py
"""
Logging configuration.

repute logs through standard library loggers under the "repute" namespace and
installs nothing by itself. `configure_logging` attaches one handler to that
namespace only; the root logger and the host application's handlers are left
alone.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

PACKAGE_LOGGER = "repute"

# Query context passed with `extra=` by repute.client.
CONTEXT_FIELDS = ("service", "domain", "status")


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the query context when present."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


class _ReputeHandler(logging.StreamHandler):
    """Marks the handler installed by `configure_logging`."""


def configure_logging(
    *, level: str = "INFO", json_logging: bool = False, stream: TextIO | None = None
) -> logging.Logger:
    """
    Send repute's own log records to `stream` (stdout by default).

    Calling again replaces the handler installed earlier. Records stop
    propagating to the root logger so they are not printed twice.
    """

    pkg = logging.getLogger(PACKAGE_LOGGER)
    pkg.setLevel(level.upper())

    for h in list(pkg.handlers):
        if isinstance(h, _ReputeHandler):
            pkg.removeHandler(h)

    handler = _ReputeHandler(stream if stream is not None else sys.stdout)
    if json_logging:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    pkg.addHandler(handler)
    pkg.propagate = False
    return pkg
