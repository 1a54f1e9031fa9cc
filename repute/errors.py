# file: repute/errors.py
"""
Status taxonomy and exceptions.

Every failure surfaced to callers carries one of the `ReputeStatus` kinds.
A query that finds no qualifying reputon is not an error.
"""

from __future__ import annotations

from enum import Enum


class ReputeStatus(str, Enum):
    OK = "OK"
    PARSE = "PARSE"
    QUERY = "QUERY"
    INTERNAL = "INTERNAL"


class ReputeError(Exception):
    """Base class for all errors raised by repute."""

    status: ReputeStatus = ReputeStatus.INTERNAL

    def describe(self) -> str:
        return f"{self.status.value}: {self}"


class ReputeParseError(ReputeError):
    """Raised when a reply is not a well-formed reputation document."""

    status = ReputeStatus.PARSE


class ReputeQueryError(ReputeError):
    """Raised on network failure or a non-200 reply."""

    status = ReputeStatus.QUERY


class ReputeInternalError(ReputeError):
    """Raised on local resource, templating, or setup failure."""

    status = ReputeStatus.INTERNAL
