"""
Analytics result cache.

Entity keys look like ``story:12:all`` or ``member:7:month``. Lists and
platform totals are derived from many entities and live under the aggregate
prefixes, so any entity write drops them too.

This is a best-effort cache: two requests that miss the same key at once both
recompute and the last write wins. Scores are pure functions of their
snapshot, so both writers store the same value.
"""
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from fastapi import Request

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 900

AGGREGATE_PREFIXES = ("stories:", "platform:")


def entity_key(entity_type: str, entity_id: int, window: str = "all") -> str:
    return f"{entity_type}:{entity_id}:{window}"


def top_performing_key(limit: int) -> str:
    return f"stories:top_performing:{limit}"


def trending_key(limit: int) -> str:
    return f"stories:trending:{limit}"


def needing_attention_key(limit: int) -> str:
    return f"stories:needing_attention:{limit}"


PLATFORM_STATS_KEY = "platform:performance_stats"


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: float


class ScoreCache(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Cached value, or None when missing or expired."""

    @abstractmethod
    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ...

    @abstractmethod
    def invalidate(self, key: str) -> None:
        ...

    @abstractmethod
    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every key starting with `prefix`; returns how many were dropped."""

    @abstractmethod
    def clear(self) -> None:
        ...

    def invalidate_for_entity(self, entity_type: str, entity_id: int) -> int:
        dropped = self.invalidate_prefix(f"{entity_type}:{entity_id}:")
        for prefix in AGGREGATE_PREFIXES:
            dropped += self.invalidate_prefix(prefix)
        return dropped


class InMemoryScoreCache(ScoreCache):
    def __init__(
        self,
        default_ttl: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        keys = [key for key in list(self._entries) if key.startswith(prefix)]
        for key in keys:
            self._entries.pop(key, None)
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def on_entity_mutated(cache: ScoreCache, entity_type: str, entity_id: int) -> None:
    """
    Invalidation hook for write paths. Call after the write has been
    committed, never before, or a concurrent read can re-cache the old data.
    """
    dropped = cache.invalidate_for_entity(entity_type, entity_id)
    logger.info("Invalidated %d cached analytics entries for %s %s", dropped, entity_type, entity_id)


def get_score_cache(request: Request) -> ScoreCache:
    return request.app.state.score_cache
