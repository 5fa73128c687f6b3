"""In-process caching for marketplace scraping results.

This module caches the expensive browser-backed reads:
- The category listing ("categories")
- Agent lists per category ("agents:<slug>")
- Single agents by id or slug ("agent:<id>")
- The agent to category index ("agent_category:<id>")

Entries expire lazily on read after the configured TTL and the whole store is
bounded by an approximate memory budget; least recently used entries are
evicted first when the budget is exceeded.
"""

import json
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from cachetools import Cache, LRUCache

from ..config import CacheSettings
from ..models import Agent, CacheStats, Category

logger = logging.getLogger(__name__)


class CacheKind(str, Enum):
    """Namespaces of cache keys."""

    CATEGORIES = "categories"
    AGENTS = "agents"
    AGENT = "agent"
    AGENT_CATEGORY = "agent_category"


@dataclass(frozen=True)
class CacheKey:
    """Namespaced cache key.

    Attributes:
        kind: Key namespace.
        ident: Category slug or agent id, empty for the categories key.
    """

    kind: CacheKind
    ident: str = ""

    def __str__(self) -> str:
        if self.kind is CacheKind.CATEGORIES:
            return self.kind.value
        return f"{self.kind.value}:{self.ident}"

    @classmethod
    def categories(cls) -> "CacheKey":
        return cls(CacheKind.CATEGORIES)

    @classmethod
    def agents(cls, category: str) -> "CacheKey":
        return cls(CacheKind.AGENTS, category)

    @classmethod
    def agent(cls, agent_id: str) -> "CacheKey":
        return cls(CacheKind.AGENT, agent_id)

    @classmethod
    def agent_category(cls, agent_id: str) -> "CacheKey":
        return cls(CacheKind.AGENT_CATEGORY, agent_id)


@dataclass(frozen=True)
class CategoriesPayload:
    categories: tuple[Category, ...]


@dataclass(frozen=True)
class AgentListPayload:
    agents: tuple[Agent, ...]


@dataclass(frozen=True)
class AgentPayload:
    agent: Agent


@dataclass(frozen=True)
class CategoryStringPayload:
    category: str


CachePayload = CategoriesPayload | AgentListPayload | AgentPayload | CategoryStringPayload

PAYLOAD_TYPES: dict[CacheKind, type] = {
    CacheKind.CATEGORIES: CategoriesPayload,
    CacheKind.AGENTS: AgentListPayload,
    CacheKind.AGENT: AgentPayload,
    CacheKind.AGENT_CATEGORY: CategoryStringPayload,
}


@dataclass(frozen=True)
class CacheEntry:
    payload: CachePayload
    stored_at: float
    size: int


def estimate_size(payload: CachePayload) -> int:
    """Approximate the memory cost of a payload by its JSON length."""
    if isinstance(payload, CategoriesPayload):
        data: Any = [c.model_dump() for c in payload.categories]
    elif isinstance(payload, AgentListPayload):
        data = [a.model_dump() for a in payload.agents]
    elif isinstance(payload, AgentPayload):
        data = payload.agent.model_dump()
    else:
        data = payload.category
    return len(json.dumps(data, ensure_ascii=False))


class _CountingLRUCache(LRUCache):
    """LRUCache that reports capacity evictions."""

    def __init__(self, maxsize: int, on_evict: Callable[[str], None]):
        super().__init__(maxsize=maxsize, getsizeof=lambda entry: entry.size)
        self._on_evict = on_evict

    def popitem(self) -> tuple[Any, Any]:
        key, entry = super().popitem()
        self._on_evict(key)
        return key, entry

    def peek_values(self) -> list[Any]:
        """Entries in LRU order, read without refreshing their recency."""
        return [Cache.__getitem__(self, key) for key in list(self)]


class CacheService:
    """TTL and size bounded cache for marketplace reads.

    Safe for use from several threads and tasks; every operation takes an
    internal lock. When disabled every read is a miss and every write a no-op.
    """

    def __init__(
        self,
        settings: CacheSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            settings: Cache settings, defaults to environment configuration.
            clock: Monotonic clock in seconds, injectable for tests.
        """
        self.settings = settings or CacheSettings()
        self.clock = clock
        self.ttl_seconds = self.settings.ttl.total_seconds()
        self.max_size_bytes = self.settings.max_size_bytes

        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._entries = _CountingLRUCache(self.max_size_bytes, self._record_eviction)

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def _record_eviction(self, key: str) -> None:
        self._evictions += 1
        logger.debug(f"Cache evicted {key} to stay within {self.max_size_bytes} bytes")

    def _is_stale(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.stored_at >= self.ttl_seconds

    def _live_count(self) -> int:
        return sum(1 for entry in self._entries.peek_values() if not self._is_stale(entry))

    def get(self, key: CacheKey) -> CachePayload | None:
        """Read a payload.

        Args:
            key: Cache key.

        Returns:
            The stored payload, or None when absent, expired, of the wrong
            variant for the key, or when caching is disabled.
        """
        if not self.enabled:
            return None

        name = str(key)
        with self._lock:
            entry = self._entries.get(name)
            if entry is None:
                self._misses += 1
                return None

            if self._is_stale(entry):
                del self._entries[name]
                self._misses += 1
                logger.debug(f"Cache entry expired: {name}")
                return None

            if not isinstance(entry.payload, PAYLOAD_TYPES[key.kind]):
                self._misses += 1
                logger.warning(f"Cache entry {name} holds unexpected {type(entry.payload).__name__}")
                return None

            self._hits += 1
            logger.debug(f"Cache hit: {name}")
            return entry.payload

    def set(self, key: CacheKey, payload: CachePayload) -> None:
        """Store a payload with a fresh timestamp.

        Args:
            key: Cache key.
            payload: Payload variant matching the key kind.

        Raises:
            TypeError: If the payload variant does not match the key kind.
        """
        expected = PAYLOAD_TYPES[key.kind]
        if not isinstance(payload, expected):
            raise TypeError(
                f"{key.kind.value} keys hold {expected.__name__}, got {type(payload).__name__}"
            )

        if not self.enabled:
            return

        name = str(key)
        size = estimate_size(payload)
        if size > self.max_size_bytes:
            logger.warning(
                f"Not caching {name}: {size} bytes exceeds budget of {self.max_size_bytes}"
            )
            return

        with self._lock:
            self._entries[name] = CacheEntry(payload=payload, stored_at=self.clock(), size=size)
        logger.debug(f"Cached {name} ({size} bytes)")

    def delete(self, key: CacheKey) -> None:
        """Drop one entry if present."""
        with self._lock:
            self._entries.pop(str(key), None)

    def clear(self) -> None:
        """Drop every entry and reset statistics."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
        logger.info("Cache cleared")

    def is_expired(self, key: CacheKey) -> bool:
        """Check whether a key is absent or aged out, without counting a read."""
        with self._lock:
            entry = self._entries.get(str(key))
            return entry is None or self._is_stale(entry)

    def size(self) -> int:
        """Number of live entries; expired ones are not counted."""
        with self._lock:
            return self._live_count()

    def stats(self) -> CacheStats:
        """Snapshot of the cache counters."""
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                size=self._live_count(),
                hit_rate=self._hits / total if total else 0.0,
            )

    def get_categories(self) -> list[Category] | None:
        payload = self.get(CacheKey.categories())
        if isinstance(payload, CategoriesPayload):
            return list(payload.categories)
        return None

    def set_categories(self, categories: list[Category]) -> None:
        self.set(CacheKey.categories(), CategoriesPayload(tuple(categories)))

    def get_agents(self, category: str) -> list[Agent] | None:
        payload = self.get(CacheKey.agents(category))
        if isinstance(payload, AgentListPayload):
            return list(payload.agents)
        return None

    def set_agents(self, category: str, agents: list[Agent]) -> None:
        self.set(CacheKey.agents(category), AgentListPayload(tuple(agents)))

    def get_agent(self, agent_id: str) -> Agent | None:
        payload = self.get(CacheKey.agent(agent_id))
        if isinstance(payload, AgentPayload):
            return payload.agent
        return None

    def set_agent(self, agent_id: str, agent: Agent) -> None:
        self.set(CacheKey.agent(agent_id), AgentPayload(agent))

    def get_agent_category(self, agent_id: str) -> str | None:
        payload = self.get(CacheKey.agent_category(agent_id))
        if isinstance(payload, CategoryStringPayload):
            return payload.category
        return None

    def set_agent_category(self, agent_id: str, category: str) -> None:
        self.set(CacheKey.agent_category(agent_id), CategoryStringPayload(category))
