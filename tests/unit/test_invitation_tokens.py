import pytest

from checkin.domain.errors import TokenEmailMismatch, TokenNotFound


@pytest.mark.asyncio
async def test_create_then_resolve(tokens, store):
    token = await tokens.create("a@x.com")

    assert await tokens.resolve(token) == "a@x.com"
    assert await store.get(f"register:token:{token}") == "a@x.com"


@pytest.mark.asyncio
async def test_resolve_unknown_token(tokens):
    with pytest.raises(TokenNotFound):
        await tokens.resolve("nope")
    with pytest.raises(TokenNotFound):
        await tokens.resolve("")


@pytest.mark.asyncio
async def test_token_lives_48_hours(tokens, clock):
    token = await tokens.create("a@x.com")
    clock.advance(48 * 3600 - 1)
    assert await tokens.resolve(token) == "a@x.com"
    clock.advance(1)
    with pytest.raises(TokenNotFound):
        await tokens.resolve(token)


@pytest.mark.asyncio
async def test_consume_with_other_email_is_mismatch_and_keeps_token(tokens):
    token = await tokens.create("a@x.com")

    with pytest.raises(TokenEmailMismatch):
        await tokens.consume(token, "b@x.com")

    assert await tokens.resolve(token) == "a@x.com"


@pytest.mark.asyncio
async def test_consume_is_exact_match(tokens):
    token = await tokens.create("a@x.com")
    with pytest.raises(TokenEmailMismatch):
        await tokens.consume(token, "A@x.com")


@pytest.mark.asyncio
async def test_consume_only_validates(tokens):
    token = await tokens.create("a@x.com")

    await tokens.consume(token, "a@x.com")
    await tokens.consume(token, "a@x.com")

    assert await tokens.resolve(token) == "a@x.com"


@pytest.mark.asyncio
async def test_consume_unknown_token(tokens):
    with pytest.raises(TokenNotFound):
        await tokens.consume("missing", "a@x.com")


@pytest.mark.asyncio
async def test_revoke(tokens):
    token = await tokens.create("a@x.com")

    assert await tokens.revoke(token) is True
    assert await tokens.revoke(token) is False
    with pytest.raises(TokenNotFound):
        await tokens.resolve(token)


@pytest.mark.asyncio
async def test_list_tokens_with_filter(tokens, clock):
    t1 = await tokens.create("a@x.com")
    t2 = await tokens.create("b@x.com")
    t3 = await tokens.create("a@x.com")

    everything = await tokens.list_tokens()
    assert {t.token for t in everything} == {t1, t2, t3}

    only_a = await tokens.list_tokens("a@x.com")
    assert {t.token for t in only_a} == {t1, t3}
    assert all(t.visitor_email == "a@x.com" for t in only_a)

    clock.advance(48 * 3600)
    assert await tokens.list_tokens() == []


@pytest.mark.asyncio
async def test_end_to_end_resolve_then_wrong_email(tokens):
    token = await tokens.create("a@x.com")
    assert await tokens.resolve(token) == "a@x.com"
    with pytest.raises(TokenEmailMismatch):
        await tokens.consume(token, "b@x.com")
