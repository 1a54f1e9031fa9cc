# file: repute/client.py
"""
REPUTE service client.

A `ReputeClient` is bound to one reputation service. It discovers the
service's query template on first use, keeps a pool of HTTP clients and
receive buffers, and answers "does this domain send spam?" queries.

Example:

    import repute

    repute.init()
    with repute.ReputeClient("rep.example.net") as client:
        result = client.query("example.com")
        if result is None:
            ...  # the service had no DKIM/sending-spam reputon for the domain
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

import httpx

from repute.config import ReputeSettings
from repute.errors import ReputeError, ReputeInternalError, ReputeQueryError
from repute.net.http import build_client, fetch_into
from repute.parser import QueryResult, parse_response
from repute.pool import ResourcePool
from repute.runtime import current_settings
from repute.template import ASSERT_SENDS_SPAM, TemplateCache, expand_template, template_from_body

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ReputeClient:
    """
    Handle for one REPUTE service.

    Safe to share between threads: each query checks out its own pooled HTTP
    client. Do not call `close()` while queries are in flight.
    """

    def __init__(
        self,
        service: str,
        *,
        settings: ReputeSettings | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not service:
            raise ReputeInternalError("service identifier must not be empty")
        if settings is None:
            settings = current_settings()
        if settings is None:
            raise ReputeInternalError("repute.init() must be called before creating a client")

        self.service = str(service)
        self.settings = settings
        self._last_error = ""
        self._templates = TemplateCache()

        http_config = settings.http_config()
        self._pool = ResourcePool(
            lambda: build_client(http_config, transport=transport),
            buffer_base_size=settings.buffer_base_size,
            max_idle=settings.pool_max_idle,
        )

    def __enter__(self) -> ReputeClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ReputeClient(service={self.service!r})"

    @property
    def pool(self) -> ResourcePool:
        return self._pool

    @property
    def last_error(self) -> str:
        """Text of the most recent failed query, or "" if none failed yet."""

        return self._last_error

    @property
    def template(self) -> str:
        """The cached query template, or "" before discovery."""

        return self._templates.value

    def close(self) -> None:
        self._pool.close()

    def _fetch(self, url: str, consume: Callable[[bytes], T]) -> T:
        with self._pool.checkout() as resource:
            fetch_into(resource.client, url, resource.buffer)
            return consume(resource.buffer.getvalue())

    def _discover_template(self) -> str:
        url = expand_template(
            self.settings.discovery_template,
            {
                "scheme": self.settings.scheme,
                "service": self.service,
                "application": self.settings.application,
            },
            max_length=self.settings.max_url_length,
        )
        logger.debug("discovering URI template for %s at %s", self.service, url)
        template = self._fetch(url, template_from_body)
        if not template:
            raise ReputeQueryError(f"{url}: empty URI template")
        return template

    def _query(self, domain: str) -> QueryResult | None:
        template = self._templates.get(self._discover_template)
        url = expand_template(
            template,
            {
                "subject": domain,
                "scheme": self.settings.scheme,
                "service": self.service,
                "application": self.settings.application,
                "assertion": ASSERT_SENDS_SPAM,
            },
            max_length=self.settings.max_url_length,
        )
        return self._fetch(url, parse_response)

    def query(self, domain: str) -> QueryResult | None:
        """
        Ask the service for the spam reputation of `domain`.

        Returns:
            The first reputon carrying the "dkim" extension and the
            "sending-spam" assertion, or None if the reply holds no such
            reputon. None is a successful answer without data; it is not a
            zero rating.

        Raises:
            ReputeQueryError: transport failure or non-200 reply (discovery
                or query).
            ReputeParseError: the reply is not a reputation document.
            ReputeInternalError: local failure (templating, HTTP client setup).
        """

        try:
            return self._query(domain)
        except ReputeError as exc:
            self._last_error = exc.describe()
            logger.warning(
                "%s: query for %s failed: %s",
                self.service,
                domain,
                self._last_error,
                extra={"service": self.service, "domain": domain, "status": exc.status.value},
            )
            raise
