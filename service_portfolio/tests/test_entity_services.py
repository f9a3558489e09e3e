"""
Unit tests for the portfolio entity services.
"""

import pytest
from pydantic import SecretStr
from prometheus_client import CollectorRegistry

from shared.config import get_config
from shared.errors import (
    AuthenticationError,
    AuthorizationError,
    ConcurrentModificationError,
    NotFoundError,
    ValidationError,
)
from shared.metrics import MetricsCollector
from shared.test_helpers import TEST_JWT_SECRET
from service_portfolio.app.accounts import InMemoryIdentityStore, PasswordHasher
from service_portfolio.app.caching import item_key, list_key
from service_portfolio.app.components import build_components
from service_portfolio.app.auth import Identity
from service_portfolio.app.domain.models import (
    PortfolioUserCreate,
    PortfolioUserUpdate,
    ProjectCreate,
    ProjectUpdate,
    SkillCreate,
)


def bearer_for(components, subject_id, roles=()):
    token = components.issuer.issue(Identity.of(subject_id, f"{subject_id}@x.com", roles))
    return f"Bearer {token}"


class TestEntityServices:
    """Test cases for PortfolioUserService, ProjectService and SkillService."""

    @pytest.fixture
    def config(self):
        return get_config(
            "portfolio", 8020, jwt_secret=SecretStr(TEST_JWT_SECRET), seed_demo_data=False
        )

    @pytest.fixture
    def components(self, config):
        return build_components(
            config,
            metrics=MetricsCollector("portfolio", registry=CollectorRegistry()),
            identity_store=InMemoryIdentityStore(PasswordHasher(iterations=1000)),
        )

    @pytest.fixture
    def user_auth(self, components):
        return bearer_for(components, "u2")

    @pytest.fixture
    def admin_auth(self, components):
        return bearer_for(components, "u1", ["Admin"])

    async def _profile_with_children(self, components, auth):
        profile = await components.portfolio_users.create(PortfolioUserCreate(name="Ada"), auth)
        project = await components.projects.create(
            ProjectCreate(title="Engine", portfolio_user_id=profile["id"]), auth
        )
        skill = await components.skills.create(
            SkillCreate(name="Python", level="Advanced", portfolio_user_id=profile["id"]), auth
        )
        return profile, project, skill

    @pytest.mark.asyncio
    async def test_reads_are_public(self, components):
        assert await components.portfolio_users.list() == []
        assert await components.projects.list(None) == []
        assert await components.skills.list("Bearer garbage") == []

    @pytest.mark.asyncio
    async def test_create_requires_token(self, components):
        with pytest.raises(AuthenticationError):
            await components.portfolio_users.create(PortfolioUserCreate(name="Ada"), None)

    @pytest.mark.asyncio
    async def test_profile_linked_to_caller(self, components, user_auth):
        profile = await components.portfolio_users.create(PortfolioUserCreate(name="Ada"), user_auth)

        assert profile["application_user_id"] == "u2"
        assert profile["row_version"] == 1
        assert profile["projects"] == [] and profile["skills"] == []

    @pytest.mark.asyncio
    async def test_one_profile_per_account(self, components, user_auth):
        await components.portfolio_users.create(PortfolioUserCreate(name="Ada"), user_auth)

        with pytest.raises(ValidationError):
            await components.portfolio_users.create(PortfolioUserCreate(name="Ada again"), user_auth)

    @pytest.mark.asyncio
    async def test_child_requires_existing_profile(self, components, user_auth):
        with pytest.raises(ValidationError) as exc_info:
            await components.projects.create(ProjectCreate(title="Orphan", portfolio_user_id=42), user_auth)

        assert exc_info.value.message == "PortfolioUser with ID 42 does not exist."

    @pytest.mark.asyncio
    async def test_create_invalidates_cached_list(self, components, user_auth):
        assert await components.portfolio_users.list() == []

        await components.portfolio_users.create(PortfolioUserCreate(name="Ada"), user_auth)

        profiles = await components.portfolio_users.list()
        assert [p["name"] for p in profiles] == ["Ada"]

    @pytest.mark.asyncio
    async def test_child_write_refreshes_embedding_profile(self, components, user_auth):
        profile = await components.portfolio_users.create(PortfolioUserCreate(name="Ada"), user_auth)
        assert (await components.portfolio_users.get(profile["id"]))["projects"] == []
        await components.portfolio_users.list()

        await components.projects.create(ProjectCreate(title="Engine", portfolio_user_id=profile["id"]), user_auth)

        cached = await components.portfolio_users.get(profile["id"])
        assert [p["title"] for p in cached["projects"]] == ["Engine"]
        listed = await components.portfolio_users.list()
        assert [p["title"] for p in listed[0]["projects"]] == ["Engine"]

    @pytest.mark.asyncio
    async def test_moving_child_refreshes_both_profiles(self, components, user_auth, admin_auth):
        first, project, _ = await self._profile_with_children(components, user_auth)
        second = await components.portfolio_users.create(PortfolioUserCreate(name="Grace"), admin_auth)
        await components.portfolio_users.get(first["id"])
        await components.portfolio_users.get(second["id"])

        await components.projects.update(
            project["id"],
            ProjectUpdate(id=project["id"], title="Engine", portfolio_user_id=second["id"]),
            user_auth,
        )

        assert (await components.portfolio_users.get(first["id"]))["projects"] == []
        assert len((await components.portfolio_users.get(second["id"]))["projects"]) == 1

    @pytest.mark.asyncio
    async def test_get_missing(self, components):
        with pytest.raises(NotFoundError):
            await components.skills.get(99)

    @pytest.mark.asyncio
    async def test_not_found_does_not_hide_later_create(self, components, user_auth):
        with pytest.raises(NotFoundError):
            await components.portfolio_users.get(1)

        await components.portfolio_users.create(PortfolioUserCreate(name="Ada"), user_auth)

        assert (await components.portfolio_users.get(1))["name"] == "Ada"

    @pytest.mark.asyncio
    async def test_update_visible_to_next_read(self, components, user_auth):
        profile = await components.portfolio_users.create(PortfolioUserCreate(name="Ada"), user_auth)
        await components.portfolio_users.get(profile["id"])

        updated = await components.portfolio_users.update(
            profile["id"], PortfolioUserUpdate(id=profile["id"], name="Ada L."), user_auth
        )

        assert updated["row_version"] == 2
        assert updated["application_user_id"] == "u2"
        assert (await components.portfolio_users.get(profile["id"]))["name"] == "Ada L."

    @pytest.mark.asyncio
    async def test_update_id_mismatch(self, components, user_auth):
        profile = await components.portfolio_users.create(PortfolioUserCreate(name="Ada"), user_auth)

        with pytest.raises(ValidationError) as exc_info:
            await components.portfolio_users.update(
                profile["id"], PortfolioUserUpdate(id=profile["id"] + 1, name="Ada"), user_auth
            )
        assert exc_info.value.message == "ID mismatch"

    @pytest.mark.asyncio
    async def test_update_missing(self, components, user_auth):
        with pytest.raises(NotFoundError):
            await components.portfolio_users.update(5, PortfolioUserUpdate(id=5, name="Ghost"), user_auth)

    @pytest.mark.asyncio
    async def test_update_with_stale_version(self, components, user_auth):
        profile = await components.portfolio_users.create(PortfolioUserCreate(name="Ada"), user_auth)
        await components.portfolio_users.update(
            profile["id"], PortfolioUserUpdate(id=profile["id"], name="Ada 2", row_version=1), user_auth
        )

        with pytest.raises(ConcurrentModificationError):
            await components.portfolio_users.update(
                profile["id"], PortfolioUserUpdate(id=profile["id"], name="Ada 3", row_version=1), user_auth
            )

    @pytest.mark.asyncio
    async def test_delete_is_admin_only(self, components, user_auth, admin_auth):
        _, project, _ = await self._profile_with_children(components, user_auth)

        with pytest.raises(AuthorizationError):
            await components.projects.delete(project["id"], user_auth)

        await components.projects.delete(project["id"], admin_auth)

        with pytest.raises(NotFoundError):
            await components.projects.get(project["id"])

    @pytest.mark.asyncio
    async def test_delete_missing(self, components, admin_auth):
        with pytest.raises(NotFoundError):
            await components.skills.delete(3, admin_auth)

    @pytest.mark.asyncio
    async def test_delete_profile_cascades(self, components, user_auth, admin_auth):
        profile, project, skill = await self._profile_with_children(components, user_auth)
        await components.projects.get(project["id"])
        await components.skills.list()

        await components.portfolio_users.delete(profile["id"], admin_auth)

        store = components.cache_store
        assert not store.contains(item_key("Project", project["id"]))
        assert not store.contains(list_key("Skill"))
        with pytest.raises(NotFoundError):
            await components.projects.get(project["id"])
        assert await components.skills.list() == []
        assert await components.portfolio_users.list() == []

    @pytest.mark.asyncio
    async def test_my_profile(self, components, user_auth, admin_auth):
        await components.portfolio_users.create(PortfolioUserCreate(name="Grace"), admin_auth)
        mine = await components.portfolio_users.create(PortfolioUserCreate(name="Ada"), user_auth)

        found = await components.portfolio_users.my_profile(user_auth)

        assert found["id"] == mine["id"]

    @pytest.mark.asyncio
    async def test_my_profile_without_link(self, components, user_auth):
        with pytest.raises(NotFoundError):
            await components.portfolio_users.my_profile(user_auth)

    @pytest.mark.asyncio
    async def test_my_profile_requires_token(self, components):
        with pytest.raises(AuthenticationError):
            await components.portfolio_users.my_profile(None)
