"""
PermGate Decision Cache

TTL-based memoization of permission decisions. Expired entries are
discarded lazily, on the next read of their key; there is no sweeper.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Mapping, Optional
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
import hashlib
import json
import logging
import threading
import time


logger = logging.getLogger(__name__)


DEFAULT_TTL_SECONDS = 300.0


@dataclass
class CacheEntry:
    """A cached decision and the monotonic time it expires at."""
    result: bool
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


_SCALARS = (str, int, float, bool)


def _sort_key(item: Any) -> str:
    return json.dumps(item, separators=(",", ":"))


def _canonical(value: Any) -> Any:
    """
    Rewrite a context value so that equal contexts serialize identically.

    Plain JSON scalars pass through. Everything else becomes a list tagged
    with its type name, so a datetime never collides with its ISO string
    and ``{1: x}`` never collides with ``{"1": x}``.
    """
    if value is None or type(value) in _SCALARS:
        return value

    tag = type(value).__name__
    if isinstance(value, Mapping):
        pairs = [[_canonical(k), _canonical(v)] for k, v in value.items()]
        return [tag, sorted(pairs, key=lambda pair: _sort_key(pair[0]))]
    if isinstance(value, (set, frozenset)):
        return [tag, sorted((_canonical(v) for v in value), key=_sort_key)]
    if isinstance(value, (list, tuple)):
        return [tag, [_canonical(v) for v in value]]
    if isinstance(value, (datetime, date)):
        return [tag, value.isoformat()]
    if isinstance(value, Enum):
        return [tag, _canonical(value.value)]
    return [tag, repr(value)]


class PermissionCache:
    """
    Thread-safe decision cache.

    Features:
    - Order-independent keys over (role, resource, action, context)
    - Per-entry TTL with a configurable default
    - Lazy eviction on read
    - Can be disabled without changing any decision
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.enabled = enabled
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @staticmethod
    def make_key(
        role_id: Optional[str],
        resource: str,
        action: Any,
        context: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Stable hash of a check's inputs; mapping key order does not matter."""
        if isinstance(action, Enum):
            action = action.value
        payload = json.dumps(
            [role_id, resource, _canonical(action), _canonical(dict(context or {}))],
            separators=(",", ":"),
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def get(self, key: str) -> Optional[bool]:
        """Get a cached decision, or None on a miss."""
        if not self.enabled:
            return None

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._evictions += 1
                self._misses += 1
                return None
            self._hits += 1
            return entry.result

    def put(self, key: str, result: bool, ttl: Optional[float] = None) -> None:
        """Store a decision for ``ttl`` seconds (default TTL when omitted)."""
        if not self.enabled:
            return

        ttl = self.ttl_seconds if ttl is None else ttl
        with self._lock:
            self._entries[key] = CacheEntry(result=result, expires_at=self._clock() + ttl)

    def invalidate_all(self) -> None:
        """Drop every cached decision."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Permission cache invalidated ({count} entries)")

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "size": len(self._entries),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
