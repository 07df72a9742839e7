"""Single source of truth for "who is signed in".

``SessionStore`` signs users in and out through the identity provider, keeps the
resulting token pair in HTTP-only cookies, and answers session/user/status
queries for the gate. Queries fail open to "not authenticated": a provider
outage must never look like a valid session.
"""

from __future__ import annotations

import base64
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import unquote

from fastapi.security.utils import get_authorization_scheme_param
from starlette.responses import Response

from ..core.errors import SessionCreationFailed, SiteError, ValidationError
from ..core.security import decode_access_token
from ..schemas.auth import Session, User
from .identity import IdentityClient

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "sb-access-token"
REFRESH_COOKIE = "sb-refresh-token"
# Checked in order; the first non-empty one wins.
SESSION_COOKIE_NAMES = (ACCESS_COOKIE, "sb-auth-token", "supabase-auth-token", "sb:token")
SESSION_COOKIE_PREFIX = "sb-"


@dataclass(frozen=True)
class Credentials:
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    source: str = ""

    @property
    def present(self) -> bool:
        return bool(self.access_token or self.refresh_token)


def _unpack_cookie(value: str) -> tuple[Optional[str], Optional[str]]:
    """Pull (access, refresh) out of a session cookie.

    Accepts a bare token, a JSON list ``[access, refresh, ...]``, a JSON object
    with ``access_token``/``refresh_token`` keys, or either JSON form prefixed
    with ``base64-``.
    """

    raw = unquote(value or "").strip()
    if raw.startswith("base64-"):
        try:
            raw = base64.urlsafe_b64decode(raw[7:] + "=" * (-len(raw[7:]) % 4)).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            return None, None
    if raw[:1] in {"[", "{"}:
        try:
            data = json.loads(raw)
        except ValueError:
            return None, None
        if isinstance(data, list):
            access = data[0] if data and isinstance(data[0], str) else None
            refresh = data[1] if len(data) > 1 and isinstance(data[1], str) else None
            return access, refresh
        if isinstance(data, dict):
            return data.get("access_token"), data.get("refresh_token")
        return None, None
    return (raw or None), None


def discover_credentials(cookies: Mapping[str, str], authorization: Optional[str] = None) -> Credentials:
    """Find session evidence in cookies, falling back to a bearer header."""

    access: Optional[str] = None
    refresh: Optional[str] = None
    source = ""
    for name in SESSION_COOKIE_NAMES:
        if cookies.get(name):
            access, refresh = _unpack_cookie(cookies[name])
            source = f"cookie:{name}"
            break
    if not access:
        for name, value in cookies.items():
            if name.startswith(SESSION_COOKIE_PREFIX) and name != REFRESH_COOKIE and value:
                access, refresh = _unpack_cookie(value)
                if access:
                    source = f"cookie:{name}"
                    break
    refresh = refresh or cookies.get(REFRESH_COOKIE) or None
    if not access and authorization:
        scheme, token = get_authorization_scheme_param(authorization)
        if scheme.lower() == "bearer" and token:
            access = token
            source = "header"
    if not access and refresh and not source:
        source = f"cookie:{REFRESH_COOKIE}"
    return Credentials(access_token=access, refresh_token=refresh, source=source)


class SessionStore:
    def __init__(
        self,
        identity: IdentityClient,
        *,
        jwt_secret: str = "",
        cookie_secure: bool = False,
        cookie_max_age: int = 60 * 60 * 24 * 7,
    ) -> None:
        self.identity = identity
        self.jwt_secret = jwt_secret
        self.cookie_secure = cookie_secure
        self.cookie_max_age = cookie_max_age

    @property
    def configured(self) -> bool:
        return self.identity.configured

    # ---- sign in / out

    async def sign_in(self, email: str, password: str) -> Session:
        email = (email or "").strip()
        password = (password or "").strip()
        if not email or not password:
            raise ValidationError("Email and password are required")
        logger.info("auth.sign_in", extra={"extra_data": {"email": email}})
        data = await self.identity.sign_in_with_password(email, password)
        session = self._session_from_payload(data)
        if session is None:
            logger.error("auth.sign_in returned no session", extra={"extra_data": {"email": email}})
            raise SessionCreationFailed()
        return session

    async def sign_out(self, access_token: Optional[str]) -> None:
        if not access_token:
            return
        try:
            await self.identity.sign_out(access_token)
        except SiteError:
            logger.exception("auth.sign_out failed")
            raise

    def persist(self, response: Response, session: Session) -> None:
        for name, value in ((ACCESS_COOKIE, session.access_token), (REFRESH_COOKIE, session.refresh_token)):
            if not value:
                continue
            response.set_cookie(
                name,
                value,
                max_age=self.cookie_max_age,
                httponly=True,
                secure=self.cookie_secure,
                samesite="lax",
                path="/",
            )

    def clear(self, response: Response) -> None:
        response.delete_cookie(ACCESS_COOKIE, path="/")
        response.delete_cookie(REFRESH_COOKIE, path="/")

    # ---- read-only queries (never raise)

    async def get_session(self, credentials: Credentials) -> Optional[Session]:
        if not credentials.present:
            return None
        try:
            return await self._resolve(credentials)
        except Exception:
            logger.warning("auth.get_session failed", exc_info=True)
            return None

    async def get_user(self, credentials: Credentials) -> Optional[User]:
        session = await self.get_session(credentials)
        return session.user if session else None

    async def is_authenticated(self, credentials: Credentials) -> bool:
        return await self.get_session(credentials) is not None

    # ---- internals

    async def _resolve(self, credentials: Credentials) -> Optional[Session]:
        if credentials.access_token:
            verified = await self._verify_access_token(credentials.access_token)
            if verified is not None:
                user, expires_at = verified
                return Session(
                    access_token=credentials.access_token,
                    refresh_token=credentials.refresh_token or "",
                    expires_at=expires_at,
                    user=user,
                )
        if credentials.refresh_token:
            data = await self.identity.refresh_session(credentials.refresh_token)
            return self._session_from_payload(data)
        return None

    async def _verify_access_token(self, token: str) -> Optional[tuple[User, Optional[int]]]:
        if self.jwt_secret:
            try:
                payload = decode_access_token(token, self.jwt_secret)
            except ValueError:
                return None
            return User(id=payload.sub, email=payload.email), int(payload.exp.timestamp())
        data = await self.identity.get_user(token)
        if not data:
            return None
        return User(id=str(data["id"]), email=data.get("email")), None

    @staticmethod
    def _session_from_payload(data: Mapping[str, Any]) -> Optional[Session]:
        token = data.get("access_token") if data else None
        user = (data.get("user") or {}) if data else {}
        if not token or not user.get("id"):
            return None
        expires_in = int(data.get("expires_in") or 0)
        expires_at = data.get("expires_at") or (int(time.time()) + expires_in if expires_in else None)
        return Session(
            access_token=token,
            refresh_token=data.get("refresh_token") or "",
            token_type=data.get("token_type") or "bearer",
            expires_in=expires_in,
            expires_at=expires_at,
            user=User(id=str(user["id"]), email=user.get("email")),
        )
