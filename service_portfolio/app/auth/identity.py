"""
Identity snapshots and process-wide auth configuration.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import FrozenSet, Iterable

from shared.config import BaseConfig
from shared.errors import ConfigurationError

ADMIN_ROLE = "Admin"


@dataclass(frozen=True)
class Identity:
    """Authenticated account as captured when its token was issued."""

    subject_id: str
    email: str
    roles: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "roles", frozenset(self.roles))

    @classmethod
    def of(cls, subject_id: str, email: str, roles: Iterable[str] = ()) -> "Identity":
        return cls(subject_id=subject_id, email=email, roles=frozenset(roles))

    def has_role(self, role: str) -> bool:
        return role in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(ADMIN_ROLE)


@dataclass(frozen=True)
class AuthConfig:
    """Signing material shared by the token issuer and validator.

    Built once at start-up and passed to both sides explicitly.
    """

    signing_secret: str = field(repr=False)
    algorithm: str = "HS256"
    token_lifetime: timedelta = timedelta(hours=24)

    def __post_init__(self):
        if not self.signing_secret:
            raise ConfigurationError("JWT signing secret is not configured")
        if not self.algorithm.startswith("HS"):
            raise ConfigurationError(
                "Only HMAC signing algorithms are supported",
                details={"algorithm": self.algorithm},
            )
        if self.token_lifetime <= timedelta(0):
            raise ConfigurationError("Token lifetime must be positive")

    @classmethod
    def from_settings(cls, config: BaseConfig) -> "AuthConfig":
        """Build from settings; a missing secret aborts start-up."""
        secret = config.jwt_secret.get_secret_value() if config.jwt_secret else ""
        if not secret.strip():
            raise ConfigurationError(
                "JWT signing secret is not configured; set SKILLSNAP_JWT_SECRET or JWT_KEY"
            )
        return cls(
            signing_secret=secret,
            algorithm=config.jwt_algorithm,
            token_lifetime=timedelta(hours=config.token_lifetime_hours),
        )
