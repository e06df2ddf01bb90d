from fastapi import Header, HTTPException, Request, status

from checkin.application.correlation import TransactionCorrelationEngine
from checkin.application.daily_task import DailyTaskRunner
from checkin.application.invitation_tokens import InvitationTokenManager
from checkin.application.one_time_codes import OneTimeCodeManager
from checkin.domain.ports.verifier_port import ExternalVerifierPort
from checkin.domain.ports.visitor_profile_repository import (
    VisitorProfileRepositoryPort,
)
from checkin.domain.services import secure_compare
from checkin.settings import get_settings
from checkin.wiring import Resources


def _resources(request: Request) -> Resources:
    # This is set in checkin.main lifespan()
    return request.app.state.resources


def get_code_manager(request: Request) -> OneTimeCodeManager:
    return _resources(request).codes


def get_token_manager(request: Request) -> InvitationTokenManager:
    return _resources(request).tokens


def get_correlation_engine(request: Request) -> TransactionCorrelationEngine:
    return _resources(request).correlation


def get_verifier(request: Request) -> ExternalVerifierPort:
    return _resources(request).verifier


def get_profiles(request: Request) -> VisitorProfileRepositoryPort:
    return _resources(request).profiles


def get_daily_task(request: Request) -> DailyTaskRunner:
    return _resources(request).daily_task


def require_admin(x_admin_key: str | None = Header(default=None)) -> None:
    expected = get_settings().admin_api_key
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="dashboard disabled"
        )
    if not x_admin_key or not secure_compare(x_admin_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid admin key"
        )
