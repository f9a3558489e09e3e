"""
Portfolio entities and the services that read and write them.
"""

from .models import EntityKind, cache_ttls_from_config
from .services import (
    ChildEntityService,
    EntityService,
    PortfolioUserService,
    ProjectService,
    SkillService,
)

__all__ = [
    "ChildEntityService",
    "EntityKind",
    "EntityService",
    "PortfolioUserService",
    "ProjectService",
    "SkillService",
    "cache_ttls_from_config",
]
