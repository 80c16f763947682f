from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Set, Tuple
from uuid import UUID

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def cache_key(namespace: str, business_id: UUID | str, *parts: Any) -> str:
    """
    Build a cache key for a tenant-scoped read.

    The tenant id is always part of the key so two businesses never share an entry.
    """
    suffix = ":".join(str(p) for p in parts)
    base = f"{namespace}:{business_id}"
    return f"{base}:{suffix}" if suffix else base


# PUBLIC_INTERFACE
def tenant_tag(namespace: str, business_id: UUID | str) -> str:
    """Tag covering every cached read of `namespace` for one business."""
    return f"{namespace}:{business_id}"


@dataclass
class _Entry:
    value: Any
    expires_at: float
    tags: Set[str] = field(default_factory=set)


class TaggedTTLCache:
    """
    In-process LRU cache for read paths.

    Entries expire after a time-to-live and can be dropped early by tag. Keys
    and tags are built with cache_key/tenant_tag so entries never cross tenants.
    At most `max_size` entries are held; expired entries go first, then the
    least recently used.
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        max_size: int = 1000,
    ) -> None:
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()
        self._tags: Dict[str, Set[str]] = {}
        # key -> (lock, number of loads holding or waiting on it)
        self._locks: Dict[str, Tuple[asyncio.Lock, int]] = {}

    def _acquire_slot(self, key: str) -> asyncio.Lock:
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[key] = (lock, users + 1)
        return lock

    def _release_slot(self, key: str) -> None:
        lock, users = self._locks[key]
        if users <= 1:
            del self._locks[key]
        else:
            self._locks[key] = (lock, users - 1)

    # PUBLIC_INTERFACE
    def get(self, key: str) -> Optional[Any]:
        """Return a live entry or None; expired entries are evicted on access."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            self._evict(key)
            return None
        self._entries.move_to_end(key)
        return entry.value

    # PUBLIC_INTERFACE
    def set(
        self,
        key: str,
        value: Any,
        *,
        tags: Iterable[str] = (),
        ttl: Optional[float] = None,
    ) -> None:
        """Store a value under `key` for `ttl` seconds, indexed by `tags`."""
        lifetime = self.default_ttl if ttl is None else ttl
        if lifetime <= 0:
            return
        self._evict(key)
        if len(self._entries) >= self.max_size:
            self.purge_expired()
        while self._entries and len(self._entries) >= self.max_size:
            self._evict(next(iter(self._entries)))
        tag_set = set(tags)
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + lifetime, tags=tag_set)
        for tag in tag_set:
            self._tags.setdefault(tag, set()).add(key)

    # PUBLIC_INTERFACE
    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        *,
        tags: Iterable[str] = (),
        ttl: Optional[float] = None,
        should_cache: Callable[[Any], bool] = lambda _: True,
    ) -> Any:
        """
        Return the cached value for `key`, loading and storing it on a miss.

        Concurrent misses for the same key share one load.
        """
        hit = self.get(key)
        if hit is not None:
            logger.debug("Cache HIT %s", key)
            return hit
        lock = self._acquire_slot(key)
        try:
            async with lock:
                hit = self.get(key)
                if hit is not None:
                    return hit
                logger.debug("Cache MISS %s", key)
                value = await loader()
                if value is not None and should_cache(value):
                    self.set(key, value, tags=tags, ttl=ttl)
                return value
        finally:
            self._release_slot(key)

    # PUBLIC_INTERFACE
    def invalidate_tags(self, *tags: str) -> int:
        """Drop every entry carrying any of `tags`; returns the number dropped."""
        dropped = 0
        for tag in tags:
            for key in list(self._tags.pop(tag, set())):
                if key in self._entries:
                    self._evict(key)
                    dropped += 1
        if dropped:
            logger.debug("Invalidated %d cache entries for tags=%s", dropped, tags)
        return dropped

    # PUBLIC_INTERFACE
    def clear(self) -> None:
        """Drop all entries."""
        self._entries.clear()
        self._tags.clear()

    # PUBLIC_INTERFACE
    def purge_expired(self) -> int:
        """Drop every expired entry; returns the number dropped."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            self._evict(key)
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def _evict(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        for tag in entry.tags:
            keys = self._tags.get(tag)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    self._tags.pop(tag, None)
