"""
Demo data loaded at start-up: an admin account with a populated portfolio.
"""

from typing import Optional

from shared.logging import get_logger
from ..accounts import IdentityStore
from ..auth import ADMIN_ROLE
from ..caching import InvalidationCoordinator, WriteKind
from ..persistence import PortfolioRepositories
from .models import EntityKind

logger = get_logger("portfolio.seed")

ADMIN_PORTFOLIO = {
    "name": "Jordan Developer",
    "bio": "Full-stack developer passionate about learning new tech and building innovative solutions.",
    "profile_image_url": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=400&h=400&fit=crop&crop=face",
}

ADMIN_PROJECTS = [
    {
        "title": "Task Tracker",
        "description": (
            "A comprehensive task management application built with ASP.NET Core and Blazor. "
            "Features include user authentication, real-time updates, and intuitive UI."
        ),
        "image_url": "https://images.unsplash.com/photo-1611224923853-80b023f02d71?w=600&h=400&fit=crop",
    },
    {
        "title": "Weather App",
        "description": (
            "Modern weather forecasting application that integrates with multiple weather APIs. "
            "Provides detailed forecasts, weather maps, and location-based alerts."
        ),
        "image_url": "https://images.unsplash.com/photo-1504608524841-42fe6f032b4b?w=600&h=400&fit=crop",
    },
    {
        "title": "SkillSnap Platform",
        "description": (
            "A full-stack portfolio and project tracking platform built with ASP.NET Core API, "
            "Blazor WebAssembly, and SQL Server. Features authentication, caching, and modern UI."
        ),
        "image_url": "https://images.unsplash.com/photo-1460925895917-afdab827c52f?w=600&h=400&fit=crop",
    },
]

ADMIN_SKILLS = [
    ("C#", "Advanced"),
    ("Blazor", "Advanced"),
    ("ASP.NET Core", "Advanced"),
    ("Entity Framework", "Intermediate"),
    ("SQL Server", "Intermediate"),
    ("JavaScript", "Intermediate"),
    ("Azure", "Beginner"),
    ("Git", "Advanced"),
    ("REST APIs", "Advanced"),
]


async def seed_demo_data(
    identity_store: IdentityStore,
    repositories: PortfolioRepositories,
    admin_email: str,
    admin_password: str,
    invalidator: Optional[InvalidationCoordinator] = None,
) -> Optional[int]:
    """Ensure the admin account and its portfolio exist.

    Safe to run repeatedly. Returns the admin's portfolio id, or ``None``
    when the admin account could not be created.
    """
    account = await identity_store.find_by_email(admin_email)
    if account is None:
        logger.info("Creating admin user", email=admin_email)
        result = await identity_store.create_account(admin_email, admin_password)
        if not result.succeeded:
            logger.error("Failed to create admin user", errors=result.errors)
            return None
        account = result.account
    else:
        logger.info("Admin user already exists", account_id=account.id)

    if ADMIN_ROLE not in await identity_store.list_roles(account):
        role_result = await identity_store.add_to_role(account, ADMIN_ROLE)
        if not role_result.succeeded:
            logger.error("Failed to assign Admin role", errors=role_result.errors)
            return None

    existing = await repositories.profiles.find_by(application_user_id=account.id)
    if existing:
        logger.info("Admin user already has a portfolio", portfolio_user_id=existing[0]["id"])
        return existing[0]["id"]

    profile = await repositories.profiles.create({**ADMIN_PORTFOLIO, "application_user_id": account.id})
    project_ids = []
    for project in ADMIN_PROJECTS:
        row = await repositories.projects.create({**project, "portfolio_user_id": profile["id"]})
        project_ids.append(row["id"])
    skill_ids = []
    for name, level in ADMIN_SKILLS:
        row = await repositories.skills.create(
            {"name": name, "level": level, "portfolio_user_id": profile["id"]}
        )
        skill_ids.append(row["id"])

    if invalidator is not None:
        invalidator.after_write(EntityKind.PORTFOLIO_USER.value, WriteKind.CREATE, profile["id"])
        invalidator.invalidate_related(EntityKind.PROJECT.value, project_ids, WriteKind.CREATE)
        invalidator.invalidate_related(EntityKind.SKILL.value, skill_ids, WriteKind.CREATE)

    logger.info(
        "Portfolio created for admin user",
        portfolio_user_id=profile["id"],
        projects=len(project_ids),
        skills=len(skill_ids),
    )
    return profile["id"]
