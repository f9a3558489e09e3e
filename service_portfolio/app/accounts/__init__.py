"""
Accounts, credentials and registration/login.
"""

from .identity_store import (
    Account,
    AccountResult,
    IdentityStore,
    InMemoryIdentityStore,
    PasswordHasher,
    validate_password,
)
from .service import AccountService

__all__ = [
    "Account",
    "AccountResult",
    "AccountService",
    "IdentityStore",
    "InMemoryIdentityStore",
    "PasswordHasher",
    "validate_password",
]
