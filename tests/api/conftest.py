import pytest
from fastapi.testclient import TestClient

from checkin.application.correlation import TransactionCorrelationEngine
from checkin.application.daily_task import DailyTaskRunner
from checkin.application.invitation_tokens import InvitationTokenManager
from checkin.application.one_time_codes import OneTimeCodeManager
from checkin.infrastructure.memory_cache.ttl_store import InMemoryTTLStore
from checkin.main import create_app
from checkin.presentation.dependencies import (
    get_code_manager,
    get_correlation_engine,
    get_daily_task,
    get_profiles,
    get_token_manager,
    get_verifier,
)
from checkin.settings import get_settings
from tests.fakes import FakeMailer, FakeProfileRepo, FakeStep, FakeVerifier


class Deps:
    """Real managers on an in-process store, fakes at the edges."""

    def __init__(self):
        self.store = InMemoryTTLStore()
        self.mailer = FakeMailer()
        self.verifier = FakeVerifier()
        self.profiles = FakeProfileRepo()
        self.codes = OneTimeCodeManager(self.store, self.mailer)
        self.tokens = InvitationTokenManager(self.store)
        self.correlation = TransactionCorrelationEngine(
            self.store, self.verifier, self.profiles
        )
        self.invitations = FakeStep()
        self.daily_task = DailyTaskRunner(
            self.store, instance_id="test-host", invitations=self.invitations
        )


@pytest.fixture()
def app_and_deps():
    app = create_app()
    deps = Deps()

    app.dependency_overrides[get_code_manager] = lambda: deps.codes
    app.dependency_overrides[get_token_manager] = lambda: deps.tokens
    app.dependency_overrides[get_correlation_engine] = lambda: deps.correlation
    app.dependency_overrides[get_verifier] = lambda: deps.verifier
    app.dependency_overrides[get_profiles] = lambda: deps.profiles
    app.dependency_overrides[get_daily_task] = lambda: deps.daily_task

    try:
        yield app, deps
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_and_deps):
    app, _ = app_and_deps
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def deps(app_and_deps) -> Deps:
    return app_and_deps[1]


@pytest.fixture()
def admin_key(monkeypatch):
    monkeypatch.setenv("ADMIN_API_KEY", "test-admin-key")
    get_settings.cache_clear()
    try:
        yield {"X-Admin-Key": "test-admin-key"}
    finally:
        monkeypatch.delenv("ADMIN_API_KEY", raising=False)
        get_settings.cache_clear()
