"""
Construction of the portfolio service's collaborators.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from shared.config import BaseConfig
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .accounts import AccountService, IdentityStore, InMemoryIdentityStore
from .auth import AccessPolicyGate, AuthConfig, TokenIssuer, TokenValidator
from .auth.tokens import utc_now
from .caching import CacheStore, InvalidationCoordinator, ReadThroughCache
from .domain import PortfolioUserService, ProjectService, SkillService, cache_ttls_from_config
from .persistence import PortfolioRepositories

logger = get_logger("portfolio.components")


@dataclass
class PortfolioComponents:
    """Everything the HTTP layer talks to, built once at start-up."""

    auth_config: AuthConfig
    cache_store: CacheStore
    read_cache: ReadThroughCache
    invalidator: InvalidationCoordinator
    issuer: TokenIssuer
    validator: TokenValidator
    gate: AccessPolicyGate
    identity_store: IdentityStore
    repositories: PortfolioRepositories
    portfolio_users: PortfolioUserService
    projects: ProjectService
    skills: SkillService
    accounts: AccountService


def build_components(
    config: BaseConfig,
    *,
    metrics: Optional[MetricsCollector] = None,
    identity_store: Optional[IdentityStore] = None,
    repositories: Optional[PortfolioRepositories] = None,
    cache_store: Optional[CacheStore] = None,
    token_clock: Callable = utc_now,
) -> PortfolioComponents:
    """Wire the cache, access gate, entity services and account service.

    Raises ``ConfigurationError`` when no signing secret is configured.
    """
    auth_config = AuthConfig.from_settings(config)

    cache_store = cache_store or CacheStore()
    read_cache = ReadThroughCache(cache_store, cache_ttls_from_config(config), metrics=metrics)
    invalidator = InvalidationCoordinator(cache_store, metrics=metrics)

    issuer = TokenIssuer(auth_config, clock=token_clock)
    validator = TokenValidator(auth_config, clock=token_clock, metrics=metrics)
    gate = AccessPolicyGate(validator, metrics=metrics)

    identity_store = identity_store or InMemoryIdentityStore()
    repositories = repositories or PortfolioRepositories.in_memory()

    components = PortfolioComponents(
        auth_config=auth_config,
        cache_store=cache_store,
        read_cache=read_cache,
        invalidator=invalidator,
        issuer=issuer,
        validator=validator,
        gate=gate,
        identity_store=identity_store,
        repositories=repositories,
        portfolio_users=PortfolioUserService(
            repositories.profiles,
            repositories.projects,
            repositories.skills,
            read_cache,
            invalidator,
            gate,
        ),
        projects=ProjectService(repositories.projects, repositories.profiles, read_cache, invalidator, gate),
        skills=SkillService(repositories.skills, repositories.profiles, read_cache, invalidator, gate),
        accounts=AccountService(identity_store, issuer),
    )

    logger.info(
        "Portfolio components built",
        algorithm=auth_config.algorithm,
        token_lifetime_hours=auth_config.token_lifetime.total_seconds() / 3600,
    )
    return components
