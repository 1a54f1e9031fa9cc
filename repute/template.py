# file: repute/template.py
"""
URI Template handling for REPUTE services.

A service publishes its query template at a well-known location. The template
is fetched once per client and then reused for every query on that client.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Mapping

from uritemplate import URITemplate

from repute.errors import ReputeInternalError

logger = logging.getLogger(__name__)

DISCOVERY_TEMPLATE = "{scheme}://{service}/.well-known/repute-template"
DEFAULT_SCHEME = "http"
DEFAULT_APPLICATION = "email-id"
ASSERT_SENDS_SPAM = "sending-spam"
MAX_URL_LENGTH = 1024


def expand_template(
    template: str, params: Mapping[str, str], *, max_length: int = MAX_URL_LENGTH
) -> str:
    """
    Expand an RFC 6570 template with string parameters.

    Raises:
        ReputeInternalError: if the template cannot be expanded, expands to
            nothing, or expands beyond `max_length` characters.
    """

    try:
        url = URITemplate(template).expand(dict(params))
    except Exception as exc:
        raise ReputeInternalError(f"cannot expand URI template {template!r}: {exc}") from exc

    if not url:
        raise ReputeInternalError(f"URI template {template!r} expanded to an empty string")
    if len(url) > max_length:
        raise ReputeInternalError(f"expanded URL exceeds {max_length} characters")
    return url


def template_from_body(body: bytes) -> str:
    """Decode a discovery reply body, dropping one trailing newline."""

    text = body.decode("utf-8", errors="replace")
    if text.endswith("\n"):
        text = text[:-1]
    return text


class TemplateCache:
    """
    Holds one URI template string.

    Discovery runs under a lock dedicated to the cache, so concurrent cold
    starts share a single discovery request. If discovery raises, the cache
    stays empty and the next `get()` tries again.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._template = ""

    @property
    def value(self) -> str:
        return self._template

    def get(self, discover: Callable[[], str]) -> str:
        template = self._template
        if template:
            return template

        with self._lock:
            if self._template:
                return self._template
            template = discover()
            if template:
                self._template = template
                logger.info("cached URI template %r", template)
            return template

    def clear(self) -> None:
        with self._lock:
            self._template = ""
