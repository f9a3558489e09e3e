"""
Role-based access policy for portfolio operations.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, TYPE_CHECKING

from shared.errors import AuthenticationError, AuthorizationError, NotAuthorizedError
from shared.logging import bind_operation, get_logger, set_user_context
from .identity import ADMIN_ROLE, Identity
from .tokens import TokenRejection, TokenValidator

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class OperationClass(str, Enum):
    """Access requirement attached to an operation."""
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN_ONLY = "admin_only"


class Operation(str, Enum):
    """Operations exposed for every entity kind."""
    LIST = "list"
    GET = "get"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MY_PROFILE = "my_profile"


OPERATION_POLICY: Dict[Operation, OperationClass] = {
    Operation.LIST: OperationClass.PUBLIC,
    Operation.GET: OperationClass.PUBLIC,
    Operation.CREATE: OperationClass.AUTHENTICATED,
    Operation.UPDATE: OperationClass.AUTHENTICATED,
    Operation.DELETE: OperationClass.ADMIN_ONLY,
    Operation.MY_PROFILE: OperationClass.AUTHENTICATED,
}


class DenialReason(str, Enum):
    """Internal cause of a denial. Logged, never returned to the caller."""
    MISSING_TOKEN = "missing_token"
    BAD_SIGNATURE = "bad_signature"
    MALFORMED_TOKEN = "malformed_token"
    EXPIRED_TOKEN = "expired_token"
    INSUFFICIENT_ROLE = "insufficient_role"


_REJECTION_REASONS = {
    TokenRejection.BAD_SIGNATURE: DenialReason.BAD_SIGNATURE,
    TokenRejection.MALFORMED: DenialReason.MALFORMED_TOKEN,
    TokenRejection.EXPIRED: DenialReason.EXPIRED_TOKEN,
}


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    identity: Optional[Identity] = None
    reason: Optional[DenialReason] = None

    def to_error(self) -> NotAuthorizedError:
        """Exception for a denied decision; renders the same for every reason."""
        if self.reason is DenialReason.INSUFFICIENT_ROLE:
            return AuthorizationError()
        return AuthenticationError()


def classify(operation: Operation) -> OperationClass:
    return OPERATION_POLICY[operation]


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """Token from an ``Authorization: Bearer <token>`` header, else ``None``."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


class AccessPolicyGate:
    """Single decision point for every operation.

    | Class         | No token | Token, no Admin | Token, Admin |
    |---------------|----------|-----------------|--------------|
    | PUBLIC        | allow    | allow           | allow        |
    | AUTHENTICATED | deny     | allow           | allow        |
    | ADMIN_ONLY    | deny     | deny            | allow        |
    """

    def __init__(self, validator: TokenValidator, *, metrics: Optional["MetricsCollector"] = None):
        self.validator = validator
        self.metrics = metrics
        self.logger = get_logger("portfolio.access_gate")

    def evaluate(self, operation_class: OperationClass, authorization: Optional[str]) -> AccessDecision:
        """Decide without raising."""
        if operation_class is OperationClass.PUBLIC:
            decision = AccessDecision(allowed=True)
        else:
            decision = self._evaluate_protected(operation_class, authorization)

        self._record(operation_class, decision)
        return decision

    def authorize(self, operation_class: OperationClass, authorization: Optional[str]) -> Optional[Identity]:
        """Identity of an allowed caller (``None`` for public operations).

        Raises ``NotAuthorizedError`` on denial.
        """
        decision = self.evaluate(operation_class, authorization)
        if not decision.allowed:
            raise decision.to_error()
        if decision.identity is not None:
            set_user_context(decision.identity.subject_id)
        return decision.identity

    def authorize_operation(
        self, operation: Operation, authorization: Optional[str], entity_type: Optional[str] = None
    ) -> Optional[Identity]:
        operation_class = classify(operation)
        bind_operation(operation.value, entity_type=entity_type, operation_class=operation_class.value)
        return self.authorize(operation_class, authorization)

    def _evaluate_protected(self, operation_class: OperationClass, authorization: Optional[str]) -> AccessDecision:
        token = parse_bearer(authorization)
        if token is None:
            return AccessDecision(allowed=False, reason=DenialReason.MISSING_TOKEN)

        result = self.validator.validate(token)
        if not result.valid:
            return AccessDecision(allowed=False, reason=_REJECTION_REASONS[result.rejection])

        identity = result.identity
        if operation_class is OperationClass.ADMIN_ONLY and not identity.has_role(ADMIN_ROLE):
            return AccessDecision(allowed=False, identity=identity, reason=DenialReason.INSUFFICIENT_ROLE)

        return AccessDecision(allowed=True, identity=identity)

    def _record(self, operation_class: OperationClass, decision: AccessDecision) -> None:
        if decision.allowed:
            self.logger.debug(
                "Access allowed",
                operation_class=operation_class.value,
                subject_id=decision.identity.subject_id if decision.identity else None,
            )
        else:
            self.logger.warning(
                "Access denied",
                operation_class=operation_class.value,
                reason=decision.reason.value,
                subject_id=decision.identity.subject_id if decision.identity else None,
            )

        if self.metrics:
            self.metrics.increment_counter(
                "access_decisions_total",
                operation_class=operation_class.value,
                decision="allow" if decision.allowed else "deny",
            )
