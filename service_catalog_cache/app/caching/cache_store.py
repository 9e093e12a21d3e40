"""
TTL- and schema-version-aware in-memory key/value store.

Entries expire lazily: staleness is detected when a key is read, never by a
background sweep. When the store is full the entry with the oldest write
time is evicted. Reads do not refresh an entry's eviction priority, so this
is least-recently-written eviction rather than LRU.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, TYPE_CHECKING, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector

T = TypeVar("T")


class _Missing:
    """Sentinel type for absent cache values."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class CacheConfig(BaseModel):
    """Construction-time settings for a single store."""

    model_config = ConfigDict(frozen=True)

    max_entries: int = Field(default=100, ge=1)
    default_ttl: float = Field(default=15 * 60, ge=0)
    schema_version: str = Field(default="1.0.0", min_length=1)


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A single immutable cached value."""

    data: T
    written_at: float
    ttl: float
    schema_version: str

    def age(self, now: float) -> float:
        return now - self.written_at

    def is_valid(self, schema_version: str, now: float) -> bool:
        return self.schema_version == schema_version and self.age(now) <= self.ttl


class CacheStore:
    """Capacity-bounded map from string keys to cached values."""

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        *,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.name = name
        self.metrics = metrics
        self.logger = get_logger(f"catalog_cache.store.{name}")
        self._config = config or CacheConfig()
        self._clock = clock
        self._entries: Dict[str, CacheEntry[Any]] = {}

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def schema_version(self) -> str:
        return self._config.schema_version

    def set_schema_version(self, version: str) -> None:
        """Change the current schema stamp.

        Entries written under the previous stamp are dropped on their next read.
        """
        self._config = self._config.model_copy(update={"schema_version": version})
        self.logger.info("Cache schema version changed", cache=self.name, version=version)

    def set(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        """Insert or replace ``key``, evicting the oldest write when full."""
        if len(self._entries) >= self._config.max_entries:
            self._evict_oldest()

        # Re-inserting keeps dict order aligned with write order.
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            data=data,
            written_at=self._clock(),
            ttl=self._config.default_ttl if ttl is None else ttl,
            schema_version=self._config.schema_version,
        )
        self._record_size()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value for ``key`` or ``default`` when absent or stale."""
        entry = self._entries.get(key)
        if entry is None:
            return default

        if not entry.is_valid(self._config.schema_version, self._clock()):
            del self._entries[key]
            self._record_size()
            self.logger.debug("Dropped stale cache entry", cache=self.name, key=key)
            return default

        return entry.data

    def has(self, key: str) -> bool:
        return self.get(key, MISSING) is not MISSING

    def delete(self, key: str) -> bool:
        removed = self._entries.pop(key, None) is not None
        if removed:
            self._record_size()
        return removed

    def clear(self) -> None:
        self._entries.clear()
        self._record_size()

    def keys(self) -> List[str]:
        """Keys currently held, including entries not yet found stale."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def stats(self) -> Dict[str, Any]:
        """Return size, capacity, version and per-entry age/ttl."""
        now = self._clock()
        return {
            "size": len(self._entries),
            "max_size": self._config.max_entries,
            "version": self._config.schema_version,
            "items": [
                {"key": key, "age": entry.age(now), "ttl": entry.ttl}
                for key, entry in self._entries.items()
            ],
        }

    def _evict_oldest(self) -> None:
        if not self._entries:
            return

        # min() keeps the first of equal timestamps, i.e. the earliest write.
        oldest_key = min(self._entries, key=lambda k: self._entries[k].written_at)
        del self._entries[oldest_key]
        self.logger.debug("Evicted cache entry", cache=self.name, key=oldest_key)
        if self.metrics:
            self.metrics.increment_counter("cache_evictions_total", cache=self.name)

    def _record_size(self) -> None:
        if self.metrics:
            self.metrics.set_gauge("cache_entries", len(self._entries), cache=self.name)
