# checkin/domain/services.py
from __future__ import annotations

import hmac
import logging
import re
import secrets
import uuid
from datetime import datetime, timezone

import jwt

from checkin.domain.errors import MalformedCredential

logger = logging.getLogger(__name__)

CREDENTIAL_PATH = "/api/credential/"
_CREDENTIAL_PATH_RE = re.compile(re.escape(CREDENTIAL_PATH), re.IGNORECASE)


def generate_6digit_code() -> str:
    """Six-digit numeric code in 100000-999999 (never a leading zero)."""
    return str(100_000 + secrets.randbelow(900_000))


def generate_token() -> str:
    return str(uuid.uuid4())


def secure_compare(a: str, b: str) -> bool:
    """
    Constant-time comparison for secrets.
    Accepts strings; falls back to bytes if needed.
    """
    try:
        return hmac.compare_digest(a, b)
    except TypeError:
        return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def extract_credential_claims(token: str) -> tuple[str | None, datetime | None]:
    """
    Read (cid, expires_at) from the verifier's credential JWT.

    The signature is NOT verified: claims are trusted as delivered by the
    verifier over its authenticated channel.

    - cid: the part of the `jti` URL after `/api/credential/`
    - expires_at: the `exp` claim (seconds since epoch), as UTC

    Raises MalformedCredential if the token cannot be decoded at all.
    Missing or odd-looking claims are logged and returned as None.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        raise MalformedCredential(str(e)) from e

    cid: str | None = None
    jti = claims.get("jti")
    if isinstance(jti, str):
        m = _CREDENTIAL_PATH_RE.search(jti)
        if m:
            cid = jti[m.end() :] or None
        else:
            logger.warning("jti without credential path", extra={"jti": jti})
    else:
        logger.warning("jti claim missing from credential")

    expires_at: datetime | None = None
    exp = claims.get("exp")
    if exp is not None:
        try:
            expires_at = datetime.fromtimestamp(int(exp), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError):
            logger.warning("invalid exp claim", extra={"exp": str(exp)})
    else:
        logger.warning("exp claim missing from credential")

    return cid, expires_at
