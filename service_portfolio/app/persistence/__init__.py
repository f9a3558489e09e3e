"""
Persistence layer for portfolio entities.
"""

from .repository import EntityRepository, InMemoryEntityRepository, PortfolioRepositories

__all__ = [
    "EntityRepository",
    "InMemoryEntityRepository",
    "PortfolioRepositories",
]
