from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable

import checkin.domain.services as domain_services
from checkin.domain.entities import CorrelationResult, RegistrationFields, VisitorProfile
from checkin.domain.errors import MalformedCredential
from checkin.domain.ports.ttl_store import TTLStorePort
from checkin.domain.ports.verifier_port import ExternalVerifierPort
from checkin.domain.ports.visitor_profile_repository import (
    VisitorProfileRepositoryPort,
)

logger = logging.getLogger(__name__)


def stash_key(transaction_id: str) -> str:
    return f"registration:{transaction_id}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionCorrelationEngine:
    """
    Bridges the visitor's polling loop and the verifier's slow transaction.

    The verifier does not echo the submitted fields back on completion, so
    they are stashed under the transaction id at submit time and picked up
    here to build the visitor profile. Polling is safe to repeat: once the
    stash is consumed, later polls just relay the verifier's payload.
    """

    def __init__(
        self,
        store: TTLStorePort,
        verifier: ExternalVerifierPort,
        profiles: VisitorProfileRepositoryPort,
        *,
        stash_ttl_seconds: int = 24 * 3600,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._verifier = verifier
        self._profiles = profiles
        self._stash_ttl = stash_ttl_seconds
        self._now = now

    async def stash(self, transaction_id: str, fields: RegistrationFields) -> None:
        if not transaction_id:
            raise ValueError("transaction_id is required")
        await self._store.set(
            stash_key(transaction_id), json.dumps(fields.to_dict()), self._stash_ttl
        )
        logger.info(
            "registration stashed", extra={"transaction_id": transaction_id}
        )

    async def correlate(self, transaction_id: str) -> CorrelationResult:
        status = await self._verifier.poll_status(transaction_id)
        if not status.completed:
            return CorrelationResult(state="waiting")

        key = stash_key(transaction_id)
        # claim the stash; an overlapping poll finds nothing and skips the upsert
        raw = await self._store.take(key)
        if raw is None:
            logger.warning(
                "no stashed registration for completed transaction",
                extra={"transaction_id": transaction_id},
            )
            return CorrelationResult(state="completed", payload=status.payload)

        fields = _load_fields(raw, transaction_id)
        if fields is not None:
            cid, expires_at = _credential_claims(status.payload, transaction_id)
            try:
                profile = await self._profiles.upsert(
                    VisitorProfile(
                        email=fields.email,
                        name=fields.name,
                        company=fields.company,
                        phone=fields.phone,
                        cid=cid,
                        expires_at=expires_at,
                    ),
                    self._now(),
                )
            except Exception:  # noqa: BLE001
                logger.exception(
                    "could not save visitor profile",
                    extra={"transaction_id": transaction_id},
                )
                # put the stash back so the next poll retries the upsert
                await self._store.set(key, raw, self._stash_ttl)
                return CorrelationResult(state="completed", payload=status.payload)
            logger.info(
                "visitor profile saved",
                extra={
                    "transaction_id": transaction_id,
                    "email": profile.email,
                    "cid": profile.cid,
                },
            )

        return CorrelationResult(state="completed", payload=status.payload)


def _load_fields(raw: str, transaction_id: str) -> RegistrationFields | None:
    try:
        return RegistrationFields.from_dict(json.loads(raw))
    except (ValueError, TypeError, AttributeError) as e:
        # unreadable stash: nothing to build a profile from
        logger.error(
            "corrupt registration stash",
            extra={"transaction_id": transaction_id, "error": str(e)},
        )
        return None


def _credential_claims(
    payload: dict[str, Any], transaction_id: str
) -> tuple[str | None, datetime | None]:
    credential = payload.get("credential")
    if not isinstance(credential, str) or not credential:
        logger.warning(
            "completion payload has no credential",
            extra={"transaction_id": transaction_id},
        )
        return None, None
    try:
        return domain_services.extract_credential_claims(credential)
    except MalformedCredential as e:
        logger.warning(
            "could not parse credential; saving profile without cid",
            extra={"transaction_id": transaction_id, "error": str(e)},
        )
        return None, None
