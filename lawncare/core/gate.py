"""The one place that decides whether a request is authenticated.

Both the page middleware and the API dependency build a ``RequestContext`` and
call ``AuthGate.authenticate``. Environment leniency (loopback bypass, lenient
reads, semi-protected pages) is expressed as ``GatePolicy`` flags so the
decision logic itself never inspects hostnames ad hoc.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Protocol

from starlette.requests import Request

from ..schemas.auth import Session, User
from ..services.session_store import Credentials, discover_credentials
from .errors import ConfigError, SiteError, Unauthorized

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 3


class Access(str, Enum):
    PUBLIC = "public"
    UNPROTECTED = "unprotected"
    PROTECTED = "protected"
    SEMI_PROTECTED = "semi-protected"


def _matches(path: str, route: str) -> bool:
    if route == "/":
        return path == "/"
    route = route.rstrip("/")
    return path == route or path.startswith(route + "/")


def hostname_of(host: str) -> str:
    """Strip the port from a Host header value (``[::1]:8000`` -> ``::1``)."""

    host = (host or "").strip().lower()
    if host.startswith("["):
        end = host.find("]")
        return host[1:end] if end != -1 else host[1:]
    if host.count(":") == 1:
        return host.split(":", 1)[0]
    return host


@dataclass(frozen=True)
class GatePolicy:
    skip_auth_for_loopback: bool = False
    loopback_hosts: tuple[str, ...] = ("localhost", "127.0.0.1", "::1")
    lenient_read_prefixes: tuple[str, ...] = ("/api/services", "/api/gallery")
    public_paths: tuple[str, ...] = (
        "/",
        "/admin/login",
        "/admin/logout",
        "/auth/verify",
        "/favicon.ico",
        "/static",
        "/images",
        "/api/auth",
    )
    gated_prefix: str = "/admin"
    protected_prefixes: tuple[str, ...] = (
        "/admin/services",
        "/admin/gallery",
        "/admin/contact",
        "/admin/settings",
    )
    semi_protected_prefixes: tuple[str, ...] = ("/admin/dashboard",)
    max_redirects: int = MAX_REDIRECTS

    @classmethod
    def from_settings(cls, settings) -> "GatePolicy":
        return cls(
            skip_auth_for_loopback=settings.SKIP_AUTH_FOR_LOCALHOST,
            loopback_hosts=tuple(settings.loopback_hosts),
            max_redirects=settings.MAX_LOGIN_REDIRECTS,
        )

    def is_loopback(self, host: str) -> bool:
        return hostname_of(host) in self.loopback_hosts

    def is_lenient_read(self, path: str) -> bool:
        return any(_matches(path, prefix) for prefix in self.lenient_read_prefixes)

    def is_gated(self, path: str) -> bool:
        return _matches(path, self.gated_prefix)

    def classify(self, path: str) -> Access:
        if any(_matches(path, route) for route in self.public_paths):
            return Access.PUBLIC
        if not self.is_gated(path):
            return Access.UNPROTECTED
        if any(_matches(path, prefix) for prefix in self.protected_prefixes):
            return Access.PROTECTED
        if any(_matches(path, prefix) for prefix in self.semi_protected_prefixes):
            return Access.SEMI_PROTECTED
        return Access.UNPROTECTED


@dataclass(frozen=True)
class RequestContext:
    method: str
    path: str
    host: str = ""
    cookies: Mapping[str, str] = field(default_factory=dict)
    authorization: Optional[str] = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        return cls(
            method=request.method.upper(),
            path=request.url.path,
            host=request.headers.get("host") or (request.url.hostname or ""),
            cookies=dict(request.cookies),
            authorization=request.headers.get("authorization"),
        )


@dataclass
class AuthResult:
    allowed: bool
    reason: str
    user: Optional[User] = None
    session: Optional[Session] = None
    # Set when the provider handed out a new token pair that should be persisted.
    refreshed: bool = False
    error: Optional[SiteError] = None


class SessionValidator(Protocol):
    configured: bool

    async def get_session(self, credentials: Credentials) -> Optional[Session]: ...


class AuthGate:
    def __init__(self, policy: GatePolicy, sessions: SessionValidator) -> None:
        self.policy = policy
        self.sessions = sessions

    def classify(self, path: str) -> Access:
        return self.policy.classify(path)

    def _lenient(self, ctx: RequestContext) -> bool:
        return self.policy.is_loopback(ctx.host) and self.policy.classify(ctx.path) is Access.SEMI_PROTECTED

    async def authenticate(self, ctx: RequestContext) -> AuthResult:
        try:
            result = await self._authenticate(ctx)
        except Exception:
            logger.exception("gate.error", extra={"extra_data": {"path": ctx.path, "method": ctx.method}})
            if self._lenient(ctx):
                # Same outcome as a missing or rejected session on this page.
                return AuthResult(allowed=True, reason="semi-protected")
            return AuthResult(allowed=False, reason="error", error=SiteError("Internal server error"))
        extra = {"extra_data": {"path": ctx.path, "method": ctx.method, "reason": result.reason}}
        if result.allowed:
            logger.debug("gate.allow", extra=extra)
        else:
            logger.info("gate.deny", extra=extra)
        return result

    async def _authenticate(self, ctx: RequestContext) -> AuthResult:
        policy = self.policy
        loopback = policy.is_loopback(ctx.host)

        if loopback and policy.skip_auth_for_loopback:
            return AuthResult(allowed=True, reason="loopback-bypass")
        if loopback and ctx.method == "OPTIONS":
            return AuthResult(allowed=True, reason="loopback-preflight")
        if loopback and ctx.method in {"GET", "HEAD"} and policy.is_lenient_read(ctx.path):
            return AuthResult(allowed=True, reason="loopback-read")

        if not self.sessions.configured:
            return AuthResult(allowed=False, reason="not-configured", error=ConfigError())

        lenient = self._lenient(ctx)

        credentials = discover_credentials(ctx.cookies, ctx.authorization)
        if not credentials.present:
            if lenient:
                return AuthResult(allowed=True, reason="semi-protected")
            return AuthResult(allowed=False, reason="missing-credentials", error=Unauthorized())

        session = await self.sessions.get_session(credentials)
        if session is None:
            if lenient:
                return AuthResult(allowed=True, reason="semi-protected")
            return AuthResult(allowed=False, reason="invalid-session", error=Unauthorized())

        return AuthResult(
            allowed=True,
            reason="session",
            user=session.user,
            session=session,
            refreshed=session.access_token != credentials.access_token,
        )
