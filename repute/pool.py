# file: repute/pool.py
"""
Per-service pool of reusable transport handles and receive buffers.

A resource is owned either by the pool's free list or by exactly one caller
between `acquire()` and `release()`. The lock guards list manipulation only and
is never held across network I/O or client construction.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator

import httpx

from repute.errors import ReputeInternalError

logger = logging.getLogger(__name__)

BUFFER_BASE_SIZE = 1024


class ReceiveBuffer:
    """
    Growable byte buffer.

    Capacity grows to max(2 * capacity, length + need) when a write would not
    fit. Newly added capacity is zero-filled. A failed growth is reported as a
    short write (0 bytes taken).
    """

    def __init__(self, *, base_size: int = BUFFER_BASE_SIZE) -> None:
        if base_size <= 0:
            raise ValueError("base_size must be > 0")
        self._base_size = base_size
        self._buf: bytearray | None = None
        self.length = 0

    @property
    def capacity(self) -> int:
        return 0 if self._buf is None else len(self._buf)

    def _grow(self, need: int) -> bytearray | None:
        try:
            if self._buf is None:
                self._buf = bytearray(max(self._base_size, need))
            elif self.length + need > len(self._buf):
                new_size = max(len(self._buf) * 2, self.length + need)
                self._buf.extend(bytes(new_size - len(self._buf)))
        except MemoryError:
            return None
        return self._buf

    def write(self, data: bytes) -> int:
        """Append `data`, returning the number of bytes taken."""

        need = len(data)
        buf = self._grow(need)
        if buf is None:
            return 0
        buf[self.length : self.length + need] = data
        self.length += need
        return need

    def reset(self) -> None:
        self.length = 0

    def getvalue(self) -> bytes:
        if self._buf is None:
            return b""
        return bytes(self._buf[: self.length])


@dataclass(eq=False)
class PooledResource:
    client: httpx.Client
    buffer: ReceiveBuffer
    _closed: bool = field(default=False, repr=False)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.client.close()


class ResourcePool:
    """
    Thread-safe free list of `PooledResource` objects.

    By default the pool never shrinks: every resource created lives until
    `close()`. With `max_idle` set, resources released onto a full free list
    are closed instead.
    """

    def __init__(
        self,
        client_factory: Callable[[], httpx.Client],
        *,
        buffer_base_size: int = BUFFER_BASE_SIZE,
        max_idle: int | None = None,
    ) -> None:
        if max_idle is not None and max_idle < 0:
            raise ValueError("max_idle must be >= 0")
        self._client_factory = client_factory
        self._buffer_base_size = buffer_base_size
        self._max_idle = max_idle
        self._lock = threading.Lock()
        self._free: list[PooledResource] = []
        self._created = 0
        self._closed = False

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._free)

    @property
    def created_count(self) -> int:
        with self._lock:
            return self._created

    def _new_resource(self) -> PooledResource:
        try:
            client = self._client_factory()
        except Exception as exc:
            raise ReputeInternalError(f"cannot create transport handle: {exc}") from exc
        with self._lock:
            self._created += 1
            created = self._created
        logger.debug("pool: created resource #%d", created)
        return PooledResource(client=client, buffer=ReceiveBuffer(base_size=self._buffer_base_size))

    def acquire(self) -> PooledResource:
        with self._lock:
            if self._closed:
                raise ReputeInternalError("resource pool is closed")
            if self._free:
                resource = self._free.pop()
                resource.buffer.reset()
                return resource
        return self._new_resource()

    def release(self, resource: PooledResource) -> None:
        with self._lock:
            keep = not self._closed and (
                self._max_idle is None or len(self._free) < self._max_idle
            )
            if keep:
                self._free.append(resource)
                return
        resource.close()

    @contextmanager
    def checkout(self) -> Iterator[PooledResource]:
        resource = self.acquire()
        try:
            yield resource
        finally:
            self.release(resource)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            idle, self._free = self._free, []
        for resource in idle:
            resource.close()
