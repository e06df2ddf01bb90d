from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from psycopg_pool import AsyncConnectionPool
from redis.asyncio import Redis

from checkin.application.correlation import TransactionCorrelationEngine
from checkin.application.daily_task import DailyTaskRunner
from checkin.application.invitation_dispatch import InvitationDispatcher
from checkin.application.invitation_tokens import InvitationTokenManager
from checkin.application.one_time_codes import OneTimeCodeManager
from checkin.domain.ports.ttl_store import TTLStorePort
from checkin.infrastructure.db.config_repo import PgConfigSource
from checkin.infrastructure.db.pool import create_pool
from checkin.infrastructure.db.upcoming_visitors_repo import (
    PgUpcomingVisitorsRepository,
)
from checkin.infrastructure.db.visitor_profiles_repo import PgVisitorProfileRepository
from checkin.infrastructure.email.mail_relay import HttpMailRelay
from checkin.infrastructure.email.mailer import Mailer
from checkin.infrastructure.fallback_store import build_ttl_store
from checkin.infrastructure.notify.webhook_notifier import ChatWebhookNotifier
from checkin.infrastructure.redis_cache.pool import close_redis, create_redis
from checkin.infrastructure.scheduler.cron_loop import CronScheduler
from checkin.infrastructure.verifier.http_verifier import HttpVerifierAdapter
from checkin.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class Resources:
    """Everything one process shares: clients, the store, and the managers on top."""

    http_client: httpx.AsyncClient
    redis: Optional[Redis]
    pool: AsyncConnectionPool
    store: TTLStorePort
    email_adapter: HttpMailRelay
    mailer: Mailer
    verifier: HttpVerifierAdapter
    profiles: PgVisitorProfileRepository
    codes: OneTimeCodeManager
    tokens: InvitationTokenManager
    correlation: TransactionCorrelationEngine
    daily_task: DailyTaskRunner
    scheduler: CronScheduler


async def open_resources(settings: Settings) -> Resources:
    http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    redis = create_redis(settings.redis_url) if settings.redis_url else None
    store = build_ttl_store(redis)

    pool = create_pool(settings.database_url)
    await pool.open()

    # the adapter borrows the shared client and won't close it
    email_adapter = HttpMailRelay(
        base_url=settings.smtp_base_url,
        client=http_client,
        sender=settings.mail_from,
    )
    mailer = Mailer(email_adapter, code_ttl_minutes=settings.otp_ttl_seconds // 60)
    verifier = HttpVerifierAdapter(
        settings.verifier_vc_url,
        access_token=settings.verifier_vc_token,
        vc_uid=settings.verifier_vc_id,
        client=http_client,
    )
    profiles = PgVisitorProfileRepository(pool)

    codes = OneTimeCodeManager(
        store,
        mailer,
        code_ttl_seconds=settings.otp_ttl_seconds,
        cooldown_seconds=settings.otp_cooldown_seconds,
    )
    tokens = InvitationTokenManager(store, ttl_seconds=settings.invitation_ttl_seconds)
    correlation = TransactionCorrelationEngine(
        store,
        verifier,
        profiles,
        stash_ttl_seconds=settings.registration_stash_ttl_seconds,
    )

    invitations = InvitationDispatcher(
        tokens,
        store,
        mailer,
        PgUpcomingVisitorsRepository(pool),
        base_url=settings.base_url,
        tz_name=settings.invitation_timezone,
    )
    notifier = (
        ChatWebhookNotifier(settings.admin_webhook_url, client=http_client)
        if settings.admin_webhook_url
        else None
    )
    # contacts/calendar sync run in their own service; not wired here
    daily_task = DailyTaskRunner(
        store,
        lock_ttl_seconds=settings.daily_task_lock_ttl_seconds,
        invitations=invitations,
        notifier=notifier,
    )
    scheduler = CronScheduler(
        daily_task,
        PgConfigSource(pool),
        cron_key=settings.daily_task_cron_key,
        default_cron=settings.default_daily_task_cron,
        startup_delay=settings.scheduler_startup_delay_seconds,
        error_pause=settings.scheduler_error_pause_seconds,
    )

    return Resources(
        http_client=http_client,
        redis=redis,
        pool=pool,
        store=store,
        email_adapter=email_adapter,
        mailer=mailer,
        verifier=verifier,
        profiles=profiles,
        codes=codes,
        tokens=tokens,
        correlation=correlation,
        daily_task=daily_task,
        scheduler=scheduler,
    )


async def close_resources(resources: Resources) -> None:
    await resources.email_adapter.aclose()
    await resources.http_client.aclose()
    await close_redis(resources.redis)
    await resources.pool.close()
