"""
Bearer token issuance and validation.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

import jwt

from shared.logging import get_logger
from .identity import AuthConfig, Identity

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenRejection(str, Enum):
    """Why a bearer token was refused."""
    BAD_SIGNATURE = "bad_signature"
    MALFORMED = "malformed"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TokenValidationResult:
    """Outcome of validating one bearer token."""

    identity: Optional[Identity] = None
    rejection: Optional[TokenRejection] = None
    expires_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.identity is not None

    @classmethod
    def rejected(cls, rejection: TokenRejection, error: str) -> "TokenValidationResult":
        return cls(rejection=rejection, error=error)


class TokenIssuer:
    """Sign identity snapshots into self-contained bearer tokens."""

    def __init__(self, config: AuthConfig, clock: Clock = utc_now):
        self.config = config
        self._clock = clock
        self.logger = get_logger("portfolio.token_issuer")

    def issue(self, identity: Identity) -> str:
        """Token for ``identity`` valid for the configured lifetime from now."""
        issued_at = self._clock()
        expires_at = issued_at + self.config.token_lifetime
        claims: Dict[str, Any] = {
            "sub": identity.subject_id,
            "email": identity.email,
            # Distinguishes tokens issued to one identity within the same second
            "jti": uuid.uuid4().hex,
            "roles": sorted(identity.roles),
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(claims, self.config.signing_secret, algorithm=self.config.algorithm)

        self.logger.info(
            "Token issued",
            subject_id=identity.subject_id,
            roles=claims["roles"],
            expires_at=expires_at.isoformat(),
        )
        return token


class TokenValidator:
    """Verify bearer tokens without any server-side session state.

    Signature is checked first, then expiry with no grace period: a token
    whose ``exp`` is at or before now is rejected. The identity returned is
    the one embedded at issue time; role changes made later are not seen
    until the holder obtains a new token.
    """

    REQUIRED_CLAIMS = ["sub", "email", "jti", "exp"]

    def __init__(
        self,
        config: AuthConfig,
        clock: Clock = utc_now,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.config = config
        self._clock = clock
        self.metrics = metrics
        self.logger = get_logger("portfolio.token_validator")

    def validate(self, token: str) -> TokenValidationResult:
        result = self._validate(token)
        if self.metrics:
            status = "valid" if result.valid else result.rejection.value
            self.metrics.increment_counter("token_validations_total", status=status)
        if not result.valid:
            self.logger.debug("Token rejected", reason=result.rejection.value, error=result.error)
        return result

    def _validate(self, token: str) -> TokenValidationResult:
        if not token or not token.strip():
            return TokenValidationResult.rejected(TokenRejection.MALFORMED, "Empty token")

        try:
            claims = jwt.decode(
                token,
                self.config.signing_secret,
                algorithms=[self.config.algorithm],
                options={
                    # Expiry is checked below against the injected clock
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": self.REQUIRED_CLAIMS,
                },
            )
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as exc:
            return TokenValidationResult.rejected(TokenRejection.BAD_SIGNATURE, str(exc))
        except jwt.InvalidTokenError as exc:
            return TokenValidationResult.rejected(TokenRejection.MALFORMED, str(exc))

        exp = claims["exp"]
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            return TokenValidationResult.rejected(TokenRejection.MALFORMED, "Expiration claim is not numeric")

        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        if expires_at <= self._clock():
            return TokenValidationResult.rejected(TokenRejection.EXPIRED, "Token has expired")

        identity = self._identity_from_claims(claims)
        if identity is None:
            return TokenValidationResult.rejected(TokenRejection.MALFORMED, "Identity claims are malformed")

        return TokenValidationResult(identity=identity, expires_at=expires_at)

    @staticmethod
    def _identity_from_claims(claims: Dict[str, Any]) -> Optional[Identity]:
        subject = claims.get("sub")
        email = claims.get("email")
        roles = claims.get("roles", [])

        if not isinstance(subject, str) or not subject:
            return None
        if not isinstance(email, str):
            return None
        if not isinstance(roles, list) or not all(isinstance(role, str) for role in roles):
            return None

        return Identity.of(subject, email, roles)
