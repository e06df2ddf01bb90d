import logging

from checkin.application.correlation import TransactionCorrelationEngine
from checkin.application.invitation_tokens import InvitationTokenManager
from checkin.application.one_time_codes import OneTimeCodeManager
from checkin.domain.entities import RegistrationFields, SubmitResult
from checkin.domain.ports.verifier_port import ExternalVerifierPort
from checkin.domain.ports.visitor_profile_repository import (
    VisitorProfileRepositoryPort,
)

logger = logging.getLogger(__name__)


async def submit_registration(
    tokens: InvitationTokenManager,
    codes: OneTimeCodeManager,
    verifier: ExternalVerifierPort,
    correlation: TransactionCorrelationEngine,
    profiles: VisitorProfileRepositoryPort,
    fields: RegistrationFields,
    otp: str,
    token: str,
) -> SubmitResult:
    await tokens.consume(token, fields.email)
    await codes.verify(fields.email, otp)

    # a credential issued earlier is forwarded so the issuer can dedupe
    cids: list[str] = []
    try:
        existing = await profiles.get_by_email(fields.email)
    except Exception:  # noqa: BLE001
        logger.warning(
            "profile lookup failed; submitting without cids",
            extra={"email": fields.email},
            exc_info=True,
        )
        existing = None
    if existing is not None and existing.cid:
        cids.append(existing.cid)

    result = await verifier.submit(fields, cids)

    if result.transaction_id:
        await correlation.stash(result.transaction_id, fields)
    else:
        logger.warning("verifier returned no transaction id", extra={"email": fields.email})

    await tokens.revoke(token)
    return result
