"""
Portfolio entity and request/response models.
"""

from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import AnyUrl, BaseModel, BeforeValidator, EmailStr, Field, UrlConstraints

from ..caching import CacheTTL
from shared.config import BaseConfig


class EntityKind(str, Enum):
    """Entity types served by the portfolio API; values double as cache tags."""
    PORTFOLIO_USER = "PortfolioUser"
    PROJECT = "Project"
    SKILL = "Skill"


def cache_ttls_from_config(config: BaseConfig) -> dict:
    """Per-kind list/item TTLs from settings."""
    return {
        EntityKind.PORTFOLIO_USER.value: CacheTTL(
            list_ttl=config.portfolio_user_list_ttl,
            item_ttl=config.portfolio_user_item_ttl,
        ),
        EntityKind.PROJECT.value: CacheTTL(
            list_ttl=config.project_list_ttl,
            item_ttl=config.project_item_ttl,
        ),
        EntityKind.SKILL.value: CacheTTL(
            list_ttl=config.skill_list_ttl,
            item_ttl=config.skill_item_ttl,
        ),
    }


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


WebUrl = Annotated[AnyUrl, UrlConstraints(max_length=2048, allowed_schemes=["http", "https"], host_required=True)]
OptionalUrl = Annotated[Optional[WebUrl], BeforeValidator(_blank_to_none)]


# Portfolio profiles

class PortfolioUserCreate(BaseModel):
    """Request model for creating a portfolio profile."""
    name: str = Field(..., min_length=1, max_length=100)
    bio: str = Field("", max_length=2000)
    profile_image_url: OptionalUrl = None


class PortfolioUserUpdate(PortfolioUserCreate):
    """Request model for replacing a portfolio profile."""
    id: int
    row_version: Optional[int] = Field(None, description="Expected version for optimistic concurrency")


# Projects

class ProjectCreate(BaseModel):
    """Request model for creating a project."""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=4000)
    image_url: OptionalUrl = None
    portfolio_user_id: int


class ProjectUpdate(ProjectCreate):
    """Request model for replacing a project."""
    id: int
    row_version: Optional[int] = None


class Project(ProjectCreate):
    """Stored project snapshot."""
    id: int
    row_version: int


# Skills

class SkillCreate(BaseModel):
    """Request model for creating a skill."""
    name: str = Field(..., min_length=1, max_length=100)
    level: str = Field(..., min_length=1, max_length=50, description="e.g. Beginner, Intermediate, Advanced")
    portfolio_user_id: int


class SkillUpdate(SkillCreate):
    """Request model for replacing a skill."""
    id: int
    row_version: Optional[int] = None


class Skill(SkillCreate):
    """Stored skill snapshot."""
    id: int
    row_version: int


class PortfolioUser(PortfolioUserCreate):
    """Stored profile snapshot with its projects and skills."""
    id: int
    row_version: int
    application_user_id: Optional[str] = None
    projects: List[Project] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)


# Accounts

class RegisterRequest(BaseModel):
    """Request model for account registration."""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class LoginRequest(BaseModel):
    """Request model for login."""
    email: str = Field(..., max_length=256)
    password: str = Field(..., max_length=128)


class AuthResponse(BaseModel):
    """Response model for register and login."""
    success: bool
    token: str = ""
    email: str = ""
    roles: List[str] = Field(default_factory=list)
    message: str = ""
