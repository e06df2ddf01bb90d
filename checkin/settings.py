from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"
    base_url: str = ""

    # Infra
    database_url: str = "postgresql://app:app@db:5432/app"
    # empty -> in-process store (single instance only)
    redis_url: str = "redis://redis:6379/0"
    smtp_base_url: str = "http://mail-relay:8025"
    mail_from: str = "no-reply@checkin.local"
    http_timeout_seconds: float = 10.0

    # External verifier (credential issuer)
    verifier_vc_url: str = "http://verifier-mock:8090"
    verifier_vc_token: str = ""
    verifier_vc_id: str = ""

    # TTLs
    otp_ttl_seconds: int = 600
    otp_cooldown_seconds: int = 60
    invitation_ttl_seconds: int = 48 * 3600
    registration_stash_ttl_seconds: int = 24 * 3600
    daily_task_lock_ttl_seconds: int = 300

    # Scheduler
    scheduler_enabled: bool = True
    scheduler_startup_delay_seconds: float = 5.0
    scheduler_error_pause_seconds: float = 3600.0
    daily_task_cron_key: str = "daily_task_cron"
    default_daily_task_cron: str = "*/15 * * * *"

    # Daily task collaborators
    invitation_timezone: str = "Asia/Taipei"
    admin_webhook_url: str = ""

    # Dashboard (X-Admin-Key header); empty disables the admin routes
    admin_api_key: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
