"""
Stateless bearer-token authentication and role-based access control.
"""

from .identity import ADMIN_ROLE, AuthConfig, Identity
from .policy import (
    OPERATION_POLICY,
    AccessDecision,
    AccessPolicyGate,
    DenialReason,
    Operation,
    OperationClass,
    classify,
    parse_bearer,
)
from .tokens import TokenIssuer, TokenRejection, TokenValidationResult, TokenValidator

__all__ = [
    "ADMIN_ROLE",
    "OPERATION_POLICY",
    "AccessDecision",
    "AccessPolicyGate",
    "AuthConfig",
    "DenialReason",
    "Identity",
    "Operation",
    "OperationClass",
    "TokenIssuer",
    "TokenRejection",
    "TokenValidationResult",
    "TokenValidator",
    "classify",
    "parse_bearer",
]
