"""
Persistence collaborator for portfolio entities.
"""

import copy
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from shared.errors import ConcurrentModificationError
from shared.logging import get_logger


Row = Dict[str, Any]


class EntityRepository(ABC):
    """CRUD access to one entity table.

    Rows are plain dicts carrying an integer ``id`` and a ``row_version``
    that changes on every update.
    """

    entity_type: str

    @abstractmethod
    async def list_all(self) -> List[Row]:
        ...

    @abstractmethod
    async def get(self, entity_id: int) -> Optional[Row]:
        ...

    @abstractmethod
    async def exists(self, entity_id: int) -> bool:
        ...

    @abstractmethod
    async def find_by(self, **criteria: Any) -> List[Row]:
        ...

    @abstractmethod
    async def create(self, values: Row) -> Row:
        ...

    @abstractmethod
    async def update(self, entity_id: int, values: Row, expected_version: Optional[int] = None) -> Row:
        """Replace a row's values.

        Raises ``ConcurrentModificationError`` when the row no longer exists
        or its version differs from ``expected_version``.
        """

    @abstractmethod
    async def delete(self, entity_id: int) -> bool:
        ...


class InMemoryEntityRepository(EntityRepository):
    """Dict-backed repository used for local runs and tests."""

    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        self.logger = get_logger(f"portfolio.persistence.{entity_type.lower()}")
        self._rows: Dict[int, Row] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    async def list_all(self) -> List[Row]:
        with self._lock:
            return [copy.deepcopy(self._rows[key]) for key in sorted(self._rows)]

    async def get(self, entity_id: int) -> Optional[Row]:
        with self._lock:
            row = self._rows.get(entity_id)
            return copy.deepcopy(row) if row is not None else None

    async def exists(self, entity_id: int) -> bool:
        with self._lock:
            return entity_id in self._rows

    async def find_by(self, **criteria: Any) -> List[Row]:
        with self._lock:
            return [
                copy.deepcopy(row)
                for _, row in sorted(self._rows.items())
                if all(row.get(field) == value for field, value in criteria.items())
            ]

    async def create(self, values: Row) -> Row:
        with self._lock:
            entity_id = self._next_id
            self._next_id += 1
            row = {**copy.deepcopy(values), "id": entity_id, "row_version": 1}
            self._rows[entity_id] = row
            created = copy.deepcopy(row)

        self.logger.debug("Row created", id=entity_id)
        return created

    async def update(self, entity_id: int, values: Row, expected_version: Optional[int] = None) -> Row:
        with self._lock:
            current = self._rows.get(entity_id)
            if current is None:
                raise ConcurrentModificationError(
                    self.entity_type, entity_id, "Entity no longer exists"
                )
            if expected_version is not None and current["row_version"] != expected_version:
                raise ConcurrentModificationError(
                    self.entity_type, entity_id, "Entity was modified by another request"
                )

            row = {
                **copy.deepcopy(values),
                "id": entity_id,
                "row_version": current["row_version"] + 1,
            }
            self._rows[entity_id] = row
            updated = copy.deepcopy(row)

        self.logger.debug("Row updated", id=entity_id, row_version=updated["row_version"])
        return updated

    async def delete(self, entity_id: int) -> bool:
        with self._lock:
            removed = self._rows.pop(entity_id, None)

        if removed is not None:
            self.logger.debug("Row deleted", id=entity_id)
        return removed is not None


@dataclass
class PortfolioRepositories:
    """The three entity tables behind the portfolio API."""

    profiles: EntityRepository
    projects: EntityRepository
    skills: EntityRepository

    @classmethod
    def in_memory(cls) -> "PortfolioRepositories":
        return cls(
            profiles=InMemoryEntityRepository("PortfolioUser"),
            projects=InMemoryEntityRepository("Project"),
            skills=InMemoryEntityRepository("Skill"),
        )
