import asyncio

import pytest

from checkin.application.one_time_codes import OneTimeCodeManager
from checkin.domain.errors import (
    CodeMismatch,
    CodeNotFound,
    ExternalUnavailable,
    RateLimited,
)
from tests.fakes import FakeMailer, YieldingStore


@pytest.mark.asyncio
async def test_issue_stores_code_mails_it_and_starts_cooldown(codes, store, mailer):
    await codes.issue("a@x.com")

    assert await store.get("otp:a@x.com") == "123456"
    assert await store.get("cooldown:a@x.com") == "1"
    assert mailer.codes == [("a@x.com", "123456")]


@pytest.mark.asyncio
async def test_second_issue_within_cooldown_is_rate_limited(codes, mailer, clock):
    await codes.issue("a@x.com")
    clock.advance(59)

    with pytest.raises(RateLimited):
        await codes.issue("a@x.com")

    assert len(mailer.codes) == 1


@pytest.mark.asyncio
async def test_issue_allowed_again_after_cooldown(codes, mailer, clock, monkeypatch):
    from checkin.domain import services as domain_services

    await codes.issue("a@x.com")
    clock.advance(60)
    monkeypatch.setattr(domain_services, "generate_6digit_code", lambda: "654321")

    await codes.issue("a@x.com")

    assert mailer.codes[-1] == ("a@x.com", "654321")
    # the reissue replaced the old code
    with pytest.raises(CodeMismatch):
        await codes.verify("a@x.com", "123456")
    await codes.verify("a@x.com", "654321")


@pytest.mark.asyncio
async def test_cooldown_is_per_email(codes, mailer):
    await codes.issue("a@x.com")
    await codes.issue("b@x.com")
    assert [e for e, _ in mailer.codes] == ["a@x.com", "b@x.com"]


@pytest.mark.asyncio
async def test_failed_delivery_leaves_no_cooldown(store):
    flaky = FakeMailer(fail=True)
    codes = OneTimeCodeManager(store, flaky)

    with pytest.raises(ExternalUnavailable):
        await codes.issue("a@x.com")
    assert await store.get("cooldown:a@x.com") is None

    # relay is back: retry right away
    flaky.fail = False
    await codes.issue("a@x.com")
    assert flaky.codes == [("a@x.com", "123456")]


@pytest.mark.asyncio
async def test_issue_requires_email(codes):
    with pytest.raises(ValueError):
        await codes.issue("")


@pytest.mark.asyncio
async def test_verify_without_code_is_not_found(codes):
    with pytest.raises(CodeNotFound):
        await codes.verify("nobody@x.com", "123456")


@pytest.mark.asyncio
async def test_mismatch_keeps_code_for_retry(codes, store):
    await codes.issue("a@x.com")

    with pytest.raises(CodeMismatch):
        await codes.verify("a@x.com", "000000")

    assert await store.get("otp:a@x.com") == "123456"
    await codes.verify("a@x.com", "123456")


@pytest.mark.asyncio
async def test_code_expires_after_ten_minutes(codes, clock):
    await codes.issue("a@x.com")
    clock.advance(600)

    with pytest.raises(CodeNotFound):
        await codes.verify("a@x.com", "123456")


@pytest.mark.asyncio
async def test_invalidate_drops_code(codes):
    await codes.issue("a@x.com")
    await codes.invalidate("a@x.com")
    with pytest.raises(CodeNotFound):
        await codes.verify("a@x.com", "123456")


@pytest.mark.asyncio
async def test_issue_wrong_right_right_again(codes):
    await codes.issue("a@x.com")

    with pytest.raises(CodeMismatch):
        await codes.verify("a@x.com", "999999")

    await codes.verify("a@x.com", "123456")

    with pytest.raises(CodeNotFound):
        await codes.verify("a@x.com", "123456")


@pytest.mark.asyncio
async def test_concurrent_verifies_spend_the_code_once():
    codes = OneTimeCodeManager(YieldingStore(), FakeMailer())
    await codes.issue("a@x.com")

    results = await asyncio.gather(
        codes.verify("a@x.com", "123456"),
        codes.verify("a@x.com", "123456"),
        return_exceptions=True,
    )

    assert results.count(None) == 1
    assert [type(r) for r in results if r is not None] == [CodeNotFound]
