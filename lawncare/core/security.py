from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

ALGORITHM = "HS256"
# Audience the hosted auth service stamps on user access tokens.
ACCESS_AUDIENCE = "authenticated"
GUARD_AUDIENCE = "lawncare-redirect-guard"
GUARD_TTL = timedelta(minutes=5)


class AccessTokenPayload(BaseModel):
    sub: str
    exp: datetime
    aud: str | list[str]
    email: str | None = None
    role: str | None = None


class RedirectGuard(BaseModel):
    path: str
    count: int = 0


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def decode_access_token(token: str, secret: str) -> AccessTokenPayload:
    """Verify a provider-issued access token locally."""

    try:
        decoded = jwt.decode(token, secret, algorithms=[ALGORITHM], audience=ACCESS_AUDIENCE)
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    try:
        return AccessTokenPayload.model_validate(decoded)
    except ValidationError as exc:
        raise ValueError("Invalid token payload") from exc


def encode_redirect_guard(guard: RedirectGuard, secret: str, ttl: timedelta = GUARD_TTL) -> str:
    now = _now()
    payload: dict[str, Any] = {
        "path": guard.path,
        "count": guard.count,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "aud": GUARD_AUDIENCE,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_redirect_guard(token: str | None, secret: str) -> RedirectGuard | None:
    """Read the redirect counter cookie; tampered or expired cookies count as absent."""

    if not token:
        return None
    try:
        decoded = jwt.decode(token, secret, algorithms=[ALGORITHM], audience=GUARD_AUDIENCE)
        return RedirectGuard.model_validate(decoded)
    except (JWTError, ValidationError):
        return None
