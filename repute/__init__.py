# file: repute/__init__.py
"""
repute - client for REPUTE sender-reputation services.

Given a domain, a `ReputeClient` asks a reputation server whether the domain
is associated with sending spam (for DKIM-authenticated mail) and returns the
rating, the rater's confidence, the sample size, and the last-update time.

Call `repute.init()` once per process before creating clients.
"""

from __future__ import annotations

from repute.client import ReputeClient
from repute.errors import (
    ReputeError,
    ReputeInternalError,
    ReputeParseError,
    ReputeQueryError,
    ReputeStatus,
)
from repute.parser import QueryResult
from repute.runtime import init

__all__ = [
    "QueryResult",
    "ReputeClient",
    "ReputeError",
    "ReputeInternalError",
    "ReputeParseError",
    "ReputeQueryError",
    "ReputeStatus",
    "__version__",
    "init",
]

__version__ = "0.1.0"
