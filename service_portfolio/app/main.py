"""
Portfolio service for SkillSnap Access Layer.
"""

from typing import Optional

from fastapi import Header, Response
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .components import PortfolioComponents, build_components
from .domain.models import (
    LoginRequest,
    PortfolioUserCreate,
    PortfolioUserUpdate,
    ProjectCreate,
    ProjectUpdate,
    RegisterRequest,
    SkillCreate,
    SkillUpdate,
)
from .domain.seed import seed_demo_data


class PortfolioService(BaseService):
    """Portfolio service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None, **component_overrides):
        super().__init__("portfolio", 8020, config)

        # A missing signing secret raises ConfigurationError here and aborts start-up
        self.components: PortfolioComponents = build_components(
            self.config, metrics=self.metrics, **component_overrides
        )

        @self.app.on_event("startup")
        async def _startup():
            if self.config.seed_demo_data:
                await self.seed()

        self._setup_portfolio_routes()
        self._setup_auth_routes()

        self.app.state.portfolio_service = self

    async def seed(self) -> Optional[int]:
        """Load the demo admin account and portfolio."""
        try:
            return await seed_demo_data(
                self.components.identity_store,
                self.components.repositories,
                self.config.seed_admin_email,
                self.config.seed_admin_password.get_secret_value(),
                invalidator=self.components.invalidator,
            )
        except Exception as e:
            self.logger.error("Demo data seeding failed", error=str(e), exc_info=True)
            return None

    async def _check_dependencies(self):
        return {"cache": "ok", "persistence": "ok"}

    def _setup_portfolio_routes(self):
        """Set up portfolio entity routes."""
        users = self.components.portfolio_users
        projects = self.components.projects
        skills = self.components.skills

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "portfolio",
                "message": "SkillSnap Access Layer - Portfolio Service",
                "version": "1.0.0",
                "capabilities": ["read_cache", "cache_invalidation", "jwt_auth", "role_based_access"],
            }

        @self.app.get("/api/cache/stats")
        async def cache_stats():
            """Read-cache occupancy."""
            return self.components.cache_store.stats()

        # Portfolio users

        @self.app.get("/api/portfoliousers")
        async def list_portfolio_users(authorization: Optional[str] = Header(default=None)):
            return await users.list(authorization)

        # Registered before the {user_id} route so the literal path wins
        @self.app.get("/api/portfoliousers/my-profile")
        async def get_my_profile(authorization: Optional[str] = Header(default=None)):
            """Profile linked to the calling account."""
            return await users.my_profile(authorization)

        @self.app.get("/api/portfoliousers/{user_id}")
        async def get_portfolio_user(user_id: int, authorization: Optional[str] = Header(default=None)):
            return await users.get(user_id, authorization)

        @self.app.post("/api/portfoliousers", status_code=201)
        async def create_portfolio_user(
            request: PortfolioUserCreate, authorization: Optional[str] = Header(default=None)
        ):
            return await users.create(request, authorization)

        @self.app.put("/api/portfoliousers/{user_id}", status_code=204)
        async def update_portfolio_user(
            user_id: int, request: PortfolioUserUpdate, authorization: Optional[str] = Header(default=None)
        ):
            await users.update(user_id, request, authorization)
            return Response(status_code=204)

        @self.app.delete("/api/portfoliousers/{user_id}", status_code=204)
        async def delete_portfolio_user(user_id: int, authorization: Optional[str] = Header(default=None)):
            """Delete a profile together with its projects and skills."""
            await users.delete(user_id, authorization)
            return Response(status_code=204)

        # Projects

        @self.app.get("/api/projects")
        async def list_projects(authorization: Optional[str] = Header(default=None)):
            return await projects.list(authorization)

        @self.app.get("/api/projects/{project_id}")
        async def get_project(project_id: int, authorization: Optional[str] = Header(default=None)):
            return await projects.get(project_id, authorization)

        @self.app.post("/api/projects", status_code=201)
        async def create_project(request: ProjectCreate, authorization: Optional[str] = Header(default=None)):
            return await projects.create(request, authorization)

        @self.app.put("/api/projects/{project_id}", status_code=204)
        async def update_project(
            project_id: int, request: ProjectUpdate, authorization: Optional[str] = Header(default=None)
        ):
            await projects.update(project_id, request, authorization)
            return Response(status_code=204)

        @self.app.delete("/api/projects/{project_id}", status_code=204)
        async def delete_project(project_id: int, authorization: Optional[str] = Header(default=None)):
            await projects.delete(project_id, authorization)
            return Response(status_code=204)

        # Skills

        @self.app.get("/api/skills")
        async def list_skills(authorization: Optional[str] = Header(default=None)):
            return await skills.list(authorization)

        @self.app.get("/api/skills/{skill_id}")
        async def get_skill(skill_id: int, authorization: Optional[str] = Header(default=None)):
            return await skills.get(skill_id, authorization)

        @self.app.post("/api/skills", status_code=201)
        async def create_skill(request: SkillCreate, authorization: Optional[str] = Header(default=None)):
            return await skills.create(request, authorization)

        @self.app.put("/api/skills/{skill_id}", status_code=204)
        async def update_skill(
            skill_id: int, request: SkillUpdate, authorization: Optional[str] = Header(default=None)
        ):
            await skills.update(skill_id, request, authorization)
            return Response(status_code=204)

        @self.app.delete("/api/skills/{skill_id}", status_code=204)
        async def delete_skill(skill_id: int, authorization: Optional[str] = Header(default=None)):
            await skills.delete(skill_id, authorization)
            return Response(status_code=204)

    def _setup_auth_routes(self):
        """Set up registration and login routes."""
        accounts = self.components.accounts

        @self.app.post("/api/auth/register")
        async def register(request: RegisterRequest):
            """Create an account and return a bearer token for it."""
            response = await accounts.register(request)
            if not response.success:
                return JSONResponse(status_code=400, content=response.model_dump())
            return response

        @self.app.post("/api/auth/login")
        async def login(request: LoginRequest):
            """Exchange credentials for a bearer token."""
            response = await accounts.login(request)
            if not response.success:
                return JSONResponse(status_code=401, content=response.model_dump())
            return response


def create_app(config: Optional[ServiceConfig] = None):
    """Create portfolio service application."""
    service = PortfolioService(config)
    return service.app


if __name__ == "__main__":
    service = PortfolioService()
    service.run()
