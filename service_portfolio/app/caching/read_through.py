"""
Read-through caching of entity lists and entity items.
"""

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, TYPE_CHECKING, Union

from shared.logging import get_logger
from .cache_store import CacheStore
from .keys import item_key, list_key

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


Snapshot = Dict[str, Any]
ListLoader = Callable[[], Awaitable[List[Snapshot]]]
ItemLoader = Callable[[], Awaitable[Optional[Snapshot]]]


@dataclass(frozen=True)
class CacheTTL:
    """List and item TTLs for one entity kind, in seconds.

    The two values are independent; neither is assumed to bound the other.
    """

    list_ttl: float
    item_ttl: float


class ReadThroughCache:
    """Serve reads from the cache store, falling back to a loader on miss.

    Values are stored as JSON text so every hit hands back a fresh copy.
    Concurrent misses on one key may each run the loader; the last ``set``
    wins, which is harmless because loads for the same key are idempotent.
    Loaders that resolve to ``None`` (not found) are never cached.
    """

    def __init__(
        self,
        store: CacheStore,
        ttls: Mapping[str, CacheTTL],
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.ttls = dict(ttls)
        self.metrics = metrics
        self.logger = get_logger("portfolio.read_cache")

    def ttl_for(self, entity_type: str) -> CacheTTL:
        try:
            return self.ttls[entity_type]
        except KeyError:
            raise KeyError(f"No cache TTL configured for entity type '{entity_type}'") from None

    async def get_list(self, entity_type: str, loader: ListLoader) -> List[Snapshot]:
        """Cached list of ``entity_type``; ``loader`` runs only on a miss."""
        key = list_key(entity_type)
        cached = self.store.get(key)
        if cached is not None:
            self._record(entity_type, "list", hit=True, key=key)
            return json.loads(cached)

        self._record(entity_type, "list", hit=False, key=key)
        payload = self._serialize(await loader())
        self.store.set(key, payload, self.ttl_for(entity_type).list_ttl)
        return json.loads(payload)

    async def get_item(
        self,
        entity_type: str,
        entity_id: Union[int, str],
        loader: ItemLoader,
    ) -> Optional[Snapshot]:
        """Cached ``entity_type`` row, or ``None`` when the loader finds nothing."""
        key = item_key(entity_type, entity_id)
        cached = self.store.get(key)
        if cached is not None:
            self._record(entity_type, "item", hit=True, key=key)
            return json.loads(cached)

        self._record(entity_type, "item", hit=False, key=key)
        row = await loader()
        if row is None:
            self.logger.debug("Loader found nothing; not caching", key=key)
            return None

        payload = self._serialize(row)
        self.store.set(key, payload, self.ttl_for(entity_type).item_ttl)
        return json.loads(payload)

    @staticmethod
    def _serialize(value: Any) -> str:
        return json.dumps(value, default=str)

    def _record(self, entity_type: str, scope: str, *, hit: bool, key: str) -> None:
        if hit:
            self.logger.info("Cache HIT", key=key)
        else:
            self.logger.info("Cache MISS - loading from store", key=key)

        if self.metrics:
            self.metrics.increment_counter(
                "cache_hits_total" if hit else "cache_misses_total",
                entity_type=entity_type,
                scope=scope,
            )
