# file: repute/net/http.py
"""
Blocking HTTP utilities (httpx) used by the query executor.

There is deliberately no retry, backoff, or rate limiting here: a transport
failure or any final status other than 200 aborts the request immediately.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from repute.errors import ReputeQueryError
from repute.pool import ReceiveBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HttpClientConfig:
    # None inherits the httpx default timeout.
    timeout_seconds: float | None = None
    follow_redirects: bool = True
    user_agent: str = "repute/0.1"


def build_client(
    config: HttpClientConfig, *, transport: httpx.BaseTransport | None = None
) -> httpx.Client:
    headers = {"User-Agent": config.user_agent}
    kwargs: dict[str, Any] = {}
    if config.timeout_seconds is not None:
        kwargs["timeout"] = httpx.Timeout(config.timeout_seconds)
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.Client(headers=headers, follow_redirects=config.follow_redirects, **kwargs)


def fetch_into(client: httpx.Client, url: str, buffer: ReceiveBuffer) -> int:
    """
    GET `url` and stream the reply body into `buffer`.

    Returns:
        Number of body bytes received.

    Raises:
        ReputeQueryError: on transport failure, a URL httpx refuses, a short
            buffer write, or a final status other than 200.
    """

    logger.debug("GET %s", url)
    try:
        with client.stream("GET", url) as resp:
            if resp.status_code != 200:
                raise ReputeQueryError(f"{url}: HTTP status {resp.status_code}")
            for chunk in resp.iter_bytes():
                if buffer.write(chunk) != len(chunk):
                    raise ReputeQueryError(f"{url}: receive buffer could not grow")
    except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
        raise ReputeQueryError(f"{url}: {exc}") from exc
    return buffer.length
