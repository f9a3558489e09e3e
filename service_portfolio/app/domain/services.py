"""
Cached, access-controlled operations on portfolio entities.
"""

import time
from typing import Any, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel

from shared.errors import ConcurrentModificationError, NotFoundError, ValidationError
from shared.logging import get_logger
from ..auth import AccessPolicyGate, Identity, Operation
from ..caching import InvalidationCoordinator, ReadThroughCache, WriteKind
from ..persistence import EntityRepository
from .models import EntityKind, PortfolioUser, Project, Skill


Snapshot = Dict[str, Any]


class EntityService:
    """List/get/create/update/delete for one entity kind.

    Every operation passes the access gate first. Reads go through the
    read-through cache; writes go to the repository and, once acknowledged,
    invalidate the cache entries they made stale.
    """

    kind: EntityKind
    snapshot_model: Type[BaseModel]

    def __init__(
        self,
        repository: EntityRepository,
        cache: ReadThroughCache,
        invalidator: InvalidationCoordinator,
        gate: AccessPolicyGate,
    ):
        self.repository = repository
        self.cache = cache
        self.invalidator = invalidator
        self.gate = gate
        self.logger = get_logger(f"portfolio.{self.kind.value.lower()}_service")

    @property
    def entity_type(self) -> str:
        return self.kind.value

    # Reads

    async def list(self, authorization: Optional[str] = None) -> List[Snapshot]:
        self.gate.authorize_operation(Operation.LIST, authorization, self.entity_type)
        return await self.cache.get_list(self.entity_type, self._load_list)

    async def get(self, entity_id: int, authorization: Optional[str] = None) -> Snapshot:
        self.gate.authorize_operation(Operation.GET, authorization, self.entity_type)

        async def load() -> Optional[Snapshot]:
            return await self._load_item(entity_id)

        snapshot = await self.cache.get_item(self.entity_type, entity_id, load)
        if snapshot is None:
            self.logger.warning("Entity not found", id=entity_id)
            raise NotFoundError(self.entity_type, entity_id)
        return snapshot

    # Writes

    async def create(self, payload: BaseModel, authorization: Optional[str]) -> Snapshot:
        identity = self.gate.authorize_operation(Operation.CREATE, authorization, self.entity_type)
        start_time = time.perf_counter()

        values = await self._values_for_create(payload, identity)
        row = await self.repository.create(values)
        self._after_write(WriteKind.CREATE, row, previous=None)

        self.logger.info(
            "Entity created",
            id=row["id"],
            subject_id=identity.subject_id,
            duration_ms=self._elapsed_ms(start_time),
        )
        return await self._snapshot(row)

    async def update(self, entity_id: int, payload: BaseModel, authorization: Optional[str]) -> Snapshot:
        identity = self.gate.authorize_operation(Operation.UPDATE, authorization, self.entity_type)
        start_time = time.perf_counter()

        if getattr(payload, "id", None) != entity_id:
            raise ValidationError("ID mismatch", details={"path_id": entity_id, "body_id": getattr(payload, "id", None)})

        previous = await self.repository.get(entity_id)
        values = await self._values_for_update(payload, previous, identity)
        try:
            row = await self.repository.update(
                entity_id, values, expected_version=getattr(payload, "row_version", None)
            )
        except ConcurrentModificationError:
            if not await self.repository.exists(entity_id):
                raise NotFoundError(self.entity_type, entity_id) from None
            raise

        self._after_write(WriteKind.UPDATE, row, previous=previous)

        self.logger.info(
            "Entity updated",
            id=entity_id,
            row_version=row["row_version"],
            subject_id=identity.subject_id,
            duration_ms=self._elapsed_ms(start_time),
        )
        return await self._snapshot(row)

    async def delete(self, entity_id: int, authorization: Optional[str]) -> None:
        identity = self.gate.authorize_operation(Operation.DELETE, authorization, self.entity_type)
        start_time = time.perf_counter()

        row = await self.repository.get(entity_id)
        if row is None:
            raise NotFoundError(self.entity_type, entity_id)

        await self._delete_row(row)
        self._after_write(WriteKind.DELETE, row, previous=row)

        self.logger.info(
            "Entity deleted",
            id=entity_id,
            subject_id=identity.subject_id,
            duration_ms=self._elapsed_ms(start_time),
        )

    # Hooks

    async def _load_list(self) -> List[Snapshot]:
        rows = await self.repository.list_all()
        return [await self._snapshot(row) for row in rows]

    async def _load_item(self, entity_id: int) -> Optional[Snapshot]:
        row = await self.repository.get(entity_id)
        if row is None:
            return None
        return await self._snapshot(row)

    async def _snapshot(self, row: Dict[str, Any]) -> Snapshot:
        return self.snapshot_model.model_validate(row).model_dump(mode="json")

    async def _values_for_create(self, payload: BaseModel, identity: Identity) -> Dict[str, Any]:
        return payload.model_dump(mode="json", exclude={"id", "row_version"})

    async def _values_for_update(
        self, payload: BaseModel, previous: Optional[Dict[str, Any]], identity: Identity
    ) -> Dict[str, Any]:
        return payload.model_dump(mode="json", exclude={"id", "row_version"})

    async def _delete_row(self, row: Dict[str, Any]) -> None:
        if not await self.repository.delete(row["id"]):
            raise NotFoundError(self.entity_type, row["id"])

    def _after_write(self, write: WriteKind, row: Dict[str, Any], previous: Optional[Dict[str, Any]]) -> None:
        self.invalidator.after_write(self.entity_type, write, row["id"])

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return round((time.perf_counter() - start_time) * 1000, 2)


class PortfolioUserService(EntityService):
    """Profiles, each linked one-to-one to the account that created it.

    Profile snapshots embed the profile's projects and skills. Deleting a
    profile deletes its projects and skills too.
    """

    kind = EntityKind.PORTFOLIO_USER
    snapshot_model = PortfolioUser

    def __init__(
        self,
        repository: EntityRepository,
        projects: EntityRepository,
        skills: EntityRepository,
        cache: ReadThroughCache,
        invalidator: InvalidationCoordinator,
        gate: AccessPolicyGate,
    ):
        super().__init__(repository, cache, invalidator, gate)
        self.projects = projects
        self.skills = skills

    async def my_profile(self, authorization: Optional[str]) -> Snapshot:
        """Profile linked to the caller's account."""
        identity = self.gate.authorize_operation(Operation.MY_PROFILE, authorization, self.entity_type)

        rows = await self.repository.find_by(application_user_id=identity.subject_id)
        if not rows:
            self.logger.info("No profile linked to account", subject_id=identity.subject_id)
            raise NotFoundError(self.entity_type, f"for account {identity.subject_id}")
        return await self._snapshot(rows[0])

    async def _snapshot(self, row: Dict[str, Any]) -> Snapshot:
        projects = await self.projects.find_by(portfolio_user_id=row["id"])
        skills = await self.skills.find_by(portfolio_user_id=row["id"])
        return PortfolioUser.model_validate(
            {**row, "projects": projects, "skills": skills}
        ).model_dump(mode="json")

    async def _values_for_create(self, payload: BaseModel, identity: Identity) -> Dict[str, Any]:
        existing = await self.repository.find_by(application_user_id=identity.subject_id)
        if existing:
            raise ValidationError(
                "Account already has a portfolio profile",
                details={"portfolio_user_id": existing[0]["id"]},
            )
        values = payload.model_dump(mode="json", exclude={"id", "row_version"})
        values["application_user_id"] = identity.subject_id
        return values

    async def _values_for_update(
        self, payload: BaseModel, previous: Optional[Dict[str, Any]], identity: Identity
    ) -> Dict[str, Any]:
        values = payload.model_dump(mode="json", exclude={"id", "row_version"})
        # The account link is fixed at creation
        values["application_user_id"] = previous.get("application_user_id") if previous else None
        return values

    async def _delete_row(self, row: Dict[str, Any]) -> None:
        children = {
            EntityKind.PROJECT: (self.projects, await self.projects.find_by(portfolio_user_id=row["id"])),
            EntityKind.SKILL: (self.skills, await self.skills.find_by(portfolio_user_id=row["id"])),
        }
        await super()._delete_row(row)

        for kind, (repository, child_rows) in children.items():
            for child in child_rows:
                await repository.delete(child["id"])
            self.invalidator.invalidate_related(
                kind.value, (child["id"] for child in child_rows), WriteKind.DELETE
            )

        self.logger.info(
            "Cascaded profile delete",
            id=row["id"],
            projects=len(children[EntityKind.PROJECT][1]),
            skills=len(children[EntityKind.SKILL][1]),
        )


class ChildEntityService(EntityService):
    """Entities owned by a profile (projects, skills).

    The owning profile must exist. Because profile snapshots embed their
    children, writes here also invalidate the owning profile's entries.
    """

    def __init__(
        self,
        repository: EntityRepository,
        profiles: EntityRepository,
        cache: ReadThroughCache,
        invalidator: InvalidationCoordinator,
        gate: AccessPolicyGate,
    ):
        super().__init__(repository, cache, invalidator, gate)
        self.profiles = profiles

    async def _values_for_create(self, payload: BaseModel, identity: Identity) -> Dict[str, Any]:
        await self._require_profile(payload.portfolio_user_id)
        return await super()._values_for_create(payload, identity)

    async def _values_for_update(
        self, payload: BaseModel, previous: Optional[Dict[str, Any]], identity: Identity
    ) -> Dict[str, Any]:
        await self._require_profile(payload.portfolio_user_id)
        return await super()._values_for_update(payload, previous, identity)

    async def _require_profile(self, portfolio_user_id: int) -> None:
        if not await self.profiles.exists(portfolio_user_id):
            raise ValidationError(
                f"PortfolioUser with ID {portfolio_user_id} does not exist.",
                details={"portfolio_user_id": portfolio_user_id},
            )

    def _after_write(self, write: WriteKind, row: Dict[str, Any], previous: Optional[Dict[str, Any]]) -> None:
        super()._after_write(write, row, previous)
        self.invalidator.invalidate_related(
            EntityKind.PORTFOLIO_USER.value, self._owner_ids(row, previous), write
        )

    @staticmethod
    def _owner_ids(row: Dict[str, Any], previous: Optional[Dict[str, Any]]) -> Iterable[int]:
        owners = {row["portfolio_user_id"]}
        if previous is not None:
            owners.add(previous["portfolio_user_id"])
        return sorted(owners)


class ProjectService(ChildEntityService):
    kind = EntityKind.PROJECT
    snapshot_model = Project


class SkillService(ChildEntityService):
    kind = EntityKind.SKILL
    snapshot_model = Skill
