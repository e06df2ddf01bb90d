from __future__ import annotations

from typing import Protocol, Sequence

from checkin.domain.entities import RegistrationFields, SubmitResult, VerifierStatus


class ExternalVerifierPort(Protocol):
    async def submit(
        self, fields: RegistrationFields, cids: Sequence[str] = ()
    ) -> SubmitResult:
        """
        Open a credential-issuance transaction for the visitor.
        `cids` are previously issued credential ids, sent as a dedup hint.
        """

    async def poll_status(self, transaction_id: str) -> VerifierStatus:
        """
        Ask whether the visitor finished the transaction in their wallet.
        Idempotent: polling a completed transaction again returns the same payload.
        """
