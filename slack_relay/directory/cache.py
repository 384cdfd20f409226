import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from slack_relay.directory.merger import Directory

logger = structlog.get_logger()


@dataclass(frozen=True)
class CacheEntry:
    directory: Directory | None
    expires_at: float


class DirectoryCache:
    """Single-entry TTL cache for the merged directory.

    The entry is an immutable snapshot replaced by reference on ``put``, so a
    reader always sees a directory together with its own expiry. Expiry is
    checked lazily on ``get``; nothing is ever evicted explicitly.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry = CacheEntry(directory=None, expires_at=0.0)

    def get(self) -> Directory | None:
        """Return the cached directory, or None when empty or expired."""
        entry = self._entry
        if entry.directory is not None and self._clock() < entry.expires_at:
            return entry.directory
        return None

    def put(self, directory: Directory, ttl_seconds: float | None = None) -> CacheEntry:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        entry = CacheEntry(directory=directory, expires_at=self._clock() + ttl)
        self._entry = entry
        logger.info("directory.cached", size=len(directory), ttl_seconds=ttl)
        return entry

    @property
    def expires_at(self) -> float:
        return self._entry.expires_at
