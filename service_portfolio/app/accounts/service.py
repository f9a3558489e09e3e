"""
Registration and login.
"""

import time

from shared.logging import get_logger
from ..auth import Identity, TokenIssuer
from ..domain.models import AuthResponse, LoginRequest, RegisterRequest
from .identity_store import Account, IdentityStore

INVALID_CREDENTIALS = "Invalid email or password"


class AccountService:
    """Turns verified credentials into bearer tokens.

    Tokens carry the roles held at issue time; logout is client-side only
    because no session state is kept here.
    """

    def __init__(self, identity_store: IdentityStore, issuer: TokenIssuer):
        self.identity_store = identity_store
        self.issuer = issuer
        self.logger = get_logger("portfolio.accounts")

    async def register(self, request: RegisterRequest) -> AuthResponse:
        result = await self.identity_store.create_account(request.email, request.password)
        if not result.succeeded:
            self.logger.info("Registration rejected", errors=result.errors)
            return AuthResponse(success=False, message=", ".join(result.errors))

        token, roles = await self._issue_for(result.account)
        return AuthResponse(
            success=True,
            token=token,
            email=result.account.email,
            roles=roles,
            message="User registered successfully",
        )

    async def login(self, request: LoginRequest) -> AuthResponse:
        start_time = time.perf_counter()
        account = await self.identity_store.find_by_email(request.email)
        if account is None or not await self.identity_store.verify_password(account, request.password):
            self.logger.info(
                "Login failed",
                known_account=account is not None,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            return AuthResponse(success=False, message=INVALID_CREDENTIALS)

        token, roles = await self._issue_for(account)
        self.logger.info("Login succeeded", account_id=account.id, roles=roles)
        return AuthResponse(
            success=True,
            token=token,
            email=account.email,
            roles=roles,
            message="User logged in successfully",
        )

    async def _issue_for(self, account: Account):
        roles = await self.identity_store.list_roles(account)
        identity = Identity.of(account.id, account.email, roles)
        return self.issuer.issue(identity), roles
