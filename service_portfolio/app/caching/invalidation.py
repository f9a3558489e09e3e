"""
Write-triggered cache invalidation.
"""

from enum import Enum
from typing import Iterable, List, Optional, TYPE_CHECKING, Union

from shared.logging import get_logger
from .cache_store import CacheStore
from .keys import item_key, list_key

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class WriteKind(str, Enum):
    """Kinds of acknowledged writes that trigger invalidation."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class InvalidationCoordinator:
    """Drop cached snapshots made stale by an acknowledged write.

    Invalidation runs after the persistence layer acknowledged the write and
    never fails it: a reader racing with the removal may still see the old
    snapshot until the removal lands (or the TTL lapses).
    """

    def __init__(self, store: CacheStore, *, metrics: Optional["MetricsCollector"] = None):
        self.store = store
        self.metrics = metrics
        self.logger = get_logger("portfolio.invalidation")

    def after_write(self, entity_type: str, write: WriteKind, entity_id: Union[int, str]) -> List[str]:
        """Invalidate the list key, plus the item key for updates and deletes.

        A freshly created row cannot have an item entry yet, so creates only
        touch the list.
        """
        keys = [list_key(entity_type)]
        if write is not WriteKind.CREATE:
            keys.append(item_key(entity_type, entity_id))
        return self._remove(entity_type, write, keys)

    def on_created(self, entity_type: str, entity_id: Union[int, str]) -> List[str]:
        return self.after_write(entity_type, WriteKind.CREATE, entity_id)

    def on_updated(self, entity_type: str, entity_id: Union[int, str]) -> List[str]:
        return self.after_write(entity_type, WriteKind.UPDATE, entity_id)

    def on_deleted(self, entity_type: str, entity_id: Union[int, str]) -> List[str]:
        return self.after_write(entity_type, WriteKind.DELETE, entity_id)

    def invalidate_related(
        self,
        entity_type: str,
        entity_ids: Iterable[Union[int, str]],
        write: WriteKind = WriteKind.UPDATE,
    ) -> List[str]:
        """Invalidate snapshots of another kind that embed the written row.

        Used when a write to one entity changes what a different entity's
        cached snapshot contains (a profile embeds its projects and skills).
        """
        keys = [list_key(entity_type)]
        keys.extend(item_key(entity_type, entity_id) for entity_id in entity_ids)
        return self._remove(entity_type, write, keys)

    def _remove(self, entity_type: str, write: WriteKind, keys: List[str]) -> List[str]:
        removed: List[str] = []
        for key in keys:
            try:
                if self.store.remove(key):
                    removed.append(key)
            except Exception as exc:
                self.logger.error(
                    "Cache invalidation failed; entry expires by TTL",
                    key=key,
                    write=write.value,
                    error=str(exc),
                    exc_info=True,
                )

        self.logger.info(
            "Cache invalidated",
            entity_type=entity_type,
            write=write.value,
            keys=keys,
            removed=len(removed),
        )
        if self.metrics and removed:
            self.metrics.increment_counter(
                "cache_invalidations_total",
                entity_type=entity_type,
                write=write.value,
            )
        return removed
