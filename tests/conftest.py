import pytest

from checkin.application.correlation import TransactionCorrelationEngine
from checkin.application.invitation_tokens import InvitationTokenManager
from checkin.application.one_time_codes import OneTimeCodeManager
from checkin.infrastructure.memory_cache.ttl_store import InMemoryTTLStore
from tests.fakes import FakeMailer, FakeProfileRepo, FakeVerifier, ManualClock


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def store(clock):
    return InMemoryTTLStore(clock=clock)


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def verifier():
    return FakeVerifier()


@pytest.fixture()
def profiles():
    return FakeProfileRepo()


@pytest.fixture()
def codes(store, mailer):
    return OneTimeCodeManager(store, mailer)


@pytest.fixture()
def tokens(store):
    return InvitationTokenManager(store)


@pytest.fixture()
def correlation(store, verifier, profiles):
    return TransactionCorrelationEngine(store, verifier, profiles)


@pytest.fixture(autouse=True)
def patch_code(monkeypatch):
    """
    Make the 6-digit code deterministic in all tests.
    You can override in a specific test by re-monkeypatching.
    """
    from checkin.domain import services as domain_services

    monkeypatch.setattr(domain_services, "generate_6digit_code", lambda: "123456")
    yield
