"""
Account and credential store.
"""

import asyncio
import os
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from shared.logging import get_logger


@dataclass
class Account:
    """Registered login."""
    id: str
    email: str
    password_hash: str = field(repr=False)
    roles: Set[str] = field(default_factory=set)


@dataclass(frozen=True)
class AccountResult:
    """Outcome of an account mutation."""
    succeeded: bool
    account: Optional[Account] = None
    errors: List[str] = field(default_factory=list)


class IdentityStore(ABC):
    """Collaborator owning accounts, credentials and role membership."""

    @abstractmethod
    async def create_account(self, email: str, password: str) -> AccountResult:
        ...

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Account]:
        ...

    @abstractmethod
    async def verify_password(self, account: Account, password: str) -> bool:
        ...

    @abstractmethod
    async def list_roles(self, account: Account) -> List[str]:
        ...

    @abstractmethod
    async def add_to_role(self, account: Account, role: str) -> AccountResult:
        ...


def validate_password(password: str) -> List[str]:
    """Password policy violations (empty when acceptable)."""
    errors = []
    if len(password) < 6:
        errors.append("Passwords must be at least 6 characters.")
    if not any(ch.isdigit() for ch in password):
        errors.append("Passwords must have at least one digit ('0'-'9').")
    if not any(ch.islower() for ch in password):
        errors.append("Passwords must have at least one lowercase ('a'-'z').")
    if not any(ch.isupper() for ch in password):
        errors.append("Passwords must have at least one uppercase ('A'-'Z').")
    if all(ch.isalnum() for ch in password):
        errors.append("Passwords must have at least one non alphanumeric character.")
    return errors


class PasswordHasher:
    """PBKDF2-SHA256 hashes encoded as ``pbkdf2_sha256$<iterations>$<salt>$<hash>``."""

    algorithm = "pbkdf2_sha256"
    length = 32

    def __init__(self, iterations: int = 260_000):
        self.iterations = iterations

    def _kdf(self, salt: bytes, iterations: int) -> PBKDF2HMAC:
        return PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=self.length,
            salt=salt,
            iterations=iterations,
        )

    def hash(self, password: str) -> str:
        salt = os.urandom(16)
        digest = self._kdf(salt, self.iterations).derive(password.encode("utf-8"))
        return f"{self.algorithm}${self.iterations}${salt.hex()}${digest.hex()}"

    def verify(self, password: str, encoded: str) -> bool:
        try:
            algorithm, iterations, salt, digest = encoded.split("$")
            kdf = self._kdf(bytes.fromhex(salt), int(iterations))
            expected = bytes.fromhex(digest)
        except ValueError:
            return False
        if algorithm != self.algorithm:
            return False
        try:
            kdf.verify(password.encode("utf-8"), expected)
        except InvalidKey:
            return False
        return True

    async def hash_async(self, password: str) -> str:
        """Hash on a worker thread so the event loop keeps serving requests."""
        return await asyncio.to_thread(self.hash, password)

    async def verify_async(self, password: str, encoded: str) -> bool:
        return await asyncio.to_thread(self.verify, password, encoded)


class InMemoryIdentityStore(IdentityStore):
    """Process-local identity store keyed by normalized email."""

    def __init__(self, hasher: Optional[PasswordHasher] = None):
        self.hasher = hasher or PasswordHasher()
        self.logger = get_logger("portfolio.identity_store")
        self._accounts: Dict[str, Account] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _normalize(email: str) -> str:
        return email.strip().lower()

    async def create_account(self, email: str, password: str) -> AccountResult:
        errors = validate_password(password)
        if errors:
            return AccountResult(succeeded=False, errors=errors)

        account = Account(
            id=str(uuid.uuid4()),
            email=email.strip(),
            password_hash=await self.hasher.hash_async(password),
        )
        with self._lock:
            key = self._normalize(email)
            if key in self._accounts:
                return AccountResult(succeeded=False, errors=[f"Email '{email}' is already taken."])
            self._accounts[key] = account

        self.logger.info("Account created", account_id=account.id)
        return AccountResult(succeeded=True, account=account)

    async def find_by_email(self, email: str) -> Optional[Account]:
        with self._lock:
            return self._accounts.get(self._normalize(email))

    async def verify_password(self, account: Account, password: str) -> bool:
        return await self.hasher.verify_async(password, account.password_hash)

    async def list_roles(self, account: Account) -> List[str]:
        with self._lock:
            return sorted(account.roles)

    async def add_to_role(self, account: Account, role: str) -> AccountResult:
        with self._lock:
            if role in account.roles:
                return AccountResult(
                    succeeded=False, account=account, errors=[f"User already in role '{role}'."]
                )
            account.roles.add(role)

        self.logger.info("Role assigned", account_id=account.id, role=role)
        return AccountResult(succeeded=True, account=account)
