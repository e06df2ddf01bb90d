from __future__ import annotations

import logging

import checkin.domain.services as domain_services
from checkin.domain.entities import InvitationToken
from checkin.domain.errors import TokenEmailMismatch, TokenNotFound
from checkin.domain.ports.ttl_store import TTLStorePort

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "register:token:"


def token_key(token: str) -> str:
    return f"{TOKEN_PREFIX}{token}"


class InvitationTokenManager:
    """
    Time-boxed invitation tokens bound to a visitor email.

    `consume` only validates. The token is revoked by the caller as the last
    step of a successful registration, so a downstream failure leaves it
    usable for a retry.
    """

    def __init__(self, store: TTLStorePort, *, ttl_seconds: int = 48 * 3600) -> None:
        self._store = store
        self._ttl = ttl_seconds

    async def create(self, email: str) -> str:
        if not email:
            raise ValueError("email is required")
        token = domain_services.generate_token()
        await self._store.set(token_key(token), email, self._ttl)
        logger.info("invitation token created", extra={"email": email})
        return token

    async def resolve(self, token: str) -> str:
        email = await self._store.get(token_key(token)) if token else None
        if not email:
            raise TokenNotFound()
        return email

    async def consume(self, token: str, email: str) -> None:
        bound = await self.resolve(token)
        # exact match; the invitation was addressed to this spelling
        if bound != email:
            raise TokenEmailMismatch()

    async def revoke(self, token: str) -> bool:
        key = token_key(token)
        if not await self._store.get(key):
            return False
        await self._store.delete(key)
        return True

    async def list_tokens(self, visitor_email: str | None = None) -> list[InvitationToken]:
        """
        Live tokens, optionally only those bound to `visitor_email`.
        Walks the whole key space; fine for an admin screen, not for hot paths.
        """
        tokens: list[InvitationToken] = []
        for key in await self._store.keys(f"{TOKEN_PREFIX}*"):
            email = await self._store.get(key)
            if not email:
                # expired between the scan and the read
                continue
            if visitor_email is not None and email != visitor_email:
                continue
            tokens.append(
                InvitationToken(token=key[len(TOKEN_PREFIX) :], visitor_email=email)
            )
        return sorted(tokens, key=lambda t: (t.visitor_email, t.token))
