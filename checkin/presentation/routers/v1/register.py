import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from checkin.application.correlation import TransactionCorrelationEngine
from checkin.application.invitation_tokens import InvitationTokenManager
from checkin.application.one_time_codes import OneTimeCodeManager
from checkin.application.submit_registration import submit_registration
from checkin.domain.entities import RegistrationFields
from checkin.domain.errors import (
    CodeMismatch,
    CodeNotFound,
    ExternalUnavailable,
    RateLimited,
    TokenEmailMismatch,
    TokenNotFound,
)
from checkin.domain.ports.verifier_port import ExternalVerifierPort
from checkin.domain.ports.visitor_profile_repository import (
    VisitorProfileRepositoryPort,
)
from checkin.presentation.dependencies import (
    get_code_manager,
    get_correlation_engine,
    get_profiles,
    get_token_manager,
    get_verifier,
)
from checkin.schemas.requests import SendCodeIn, SubmitRegistrationIn
from checkin.schemas.responses import (
    MessageOut,
    RegisterInfoOut,
    RegistrationResultOut,
    SubmitRegistrationOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/register", tags=["Register"])


def _upstream_error(e: ExternalUnavailable) -> HTTPException:
    logger.error("external service failed", extra={"error": str(e)})
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="server error, please try again later",
    )


@router.post("/otp", response_model=MessageOut)
async def post_send_code(
    body: SendCodeIn,
    codes: Annotated[OneTimeCodeManager, Depends(get_code_manager)],
):
    try:
        await codes.issue(body.email)
    except RateLimited:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="please wait before requesting another code",
        )
    except ExternalUnavailable as e:
        raise _upstream_error(e)
    return MessageOut(message="OTP sent successfully")


@router.post("/qrcode", response_model=SubmitRegistrationOut)
async def post_submit_registration(
    body: SubmitRegistrationIn,
    tokens: Annotated[InvitationTokenManager, Depends(get_token_manager)],
    codes: Annotated[OneTimeCodeManager, Depends(get_code_manager)],
    verifier: Annotated[ExternalVerifierPort, Depends(get_verifier)],
    correlation: Annotated[
        TransactionCorrelationEngine, Depends(get_correlation_engine)
    ],
    profiles: Annotated[VisitorProfileRepositoryPort, Depends(get_profiles)],
):
    fields = RegistrationFields(
        name=body.name, email=body.email, company=body.company, phone=body.phone
    )
    try:
        result = await submit_registration(
            tokens=tokens,
            codes=codes,
            verifier=verifier,
            correlation=correlation,
            profiles=profiles,
            fields=fields,
            otp=body.otp,
            token=body.token,
        )
    except TokenNotFound:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="token not found or expired",
        )
    except TokenEmailMismatch:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="email does not match token",
        )
    except CodeNotFound:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="code expired or never sent",
        )
    except CodeMismatch:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="invalid code"
        )
    except ExternalUnavailable as e:
        raise _upstream_error(e)

    return SubmitRegistrationOut(
        transaction_id=result.transaction_id,
        qrcode_image=result.qr_code,
        auth_uri=result.deep_link,
    )


@router.get("/result", response_model=RegistrationResultOut, response_model_exclude_none=True)
async def get_registration_result(
    correlation: Annotated[
        TransactionCorrelationEngine, Depends(get_correlation_engine)
    ],
    transaction_id: str = Query(..., alias="transactionId", min_length=1),
):
    try:
        outcome = await correlation.correlate(transaction_id)
    except ExternalUnavailable as e:
        raise _upstream_error(e)
    if not outcome.completed:
        return RegistrationResultOut(message="Waiting for registration")
    return RegistrationResultOut(message="Registration completed", data=outcome.payload)


@router.get("/info", response_model=RegisterInfoOut)
async def get_register_info(
    tokens: Annotated[InvitationTokenManager, Depends(get_token_manager)],
    token: str = Query(..., min_length=1),
):
    try:
        email = await tokens.resolve(token)
    except TokenNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="token not found or expired"
        )
    return RegisterInfoOut(email=email)
