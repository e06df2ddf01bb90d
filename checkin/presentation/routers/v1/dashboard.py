import logging
from datetime import datetime, timezone
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from checkin.application.daily_task import DailyTaskRunner
from checkin.application.invitation_tokens import InvitationTokenManager
from checkin.presentation.dependencies import (
    get_daily_task,
    get_token_manager,
    require_admin,
)
from checkin.schemas.requests import CreateTokenIn
from checkin.schemas.responses import CronTriggerOut, RegisterTokenOut

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/dashboard", tags=["Dashboard"], dependencies=[Depends(require_admin)]
)


@router.get("/cron", response_model=CronTriggerOut)
async def get_trigger_daily_task(
    daily_task: Annotated[DailyTaskRunner, Depends(get_daily_task)],
):
    # same lock as the scheduler, so this can't overlap a scheduled run
    logger.info("manual daily task trigger")
    ran = await daily_task.run_guarded()
    message = "daily task executed" if ran else "daily task already running elsewhere"
    return CronTriggerOut(
        message=message, ran=ran, triggered_at=datetime.now(timezone.utc)
    )


@router.get("/registertokens", response_model=list[RegisterTokenOut])
async def get_register_tokens(
    tokens: Annotated[InvitationTokenManager, Depends(get_token_manager)],
    visitor_email: Optional[str] = Query(default=None, alias="visitorEmail"),
):
    found = await tokens.list_tokens(visitor_email or None)
    return [RegisterTokenOut(token=t.token, visitor_email=t.visitor_email) for t in found]


@router.post(
    "/registertokens",
    status_code=status.HTTP_201_CREATED,
    response_model=RegisterTokenOut,
)
async def post_register_token(
    body: CreateTokenIn,
    tokens: Annotated[InvitationTokenManager, Depends(get_token_manager)],
):
    token = await tokens.create(body.email)
    return RegisterTokenOut(token=token, visitor_email=body.email)


@router.delete("/registertokens/{token}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_register_token(
    token: str,
    tokens: Annotated[InvitationTokenManager, Depends(get_token_manager)],
):
    if not await tokens.revoke(token):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="token not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
