from __future__ import annotations

import logging
from urllib.parse import quote

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from ..core.gate import Access, AuthGate, RequestContext
from ..core.jinja import get_templates
from ..core.security import GUARD_TTL, RedirectGuard, decode_redirect_guard, encode_redirect_guard
from .request_id import principal_ctx_var

logger = logging.getLogger("lawncare.route_gate")

GUARD_COOKIE = "lc_redirect_guard"
LOGIN_PATH = "/admin/login"
NAVIGATION_METHODS = ("GET", "HEAD")

templates = get_templates()


class RouteGateMiddleware(BaseHTTPMiddleware):
    """Send unauthenticated page navigation under ``/admin`` to the login page.

    Consecutive redirects for the same path are counted in a short-lived signed
    cookie. Once the count reaches the policy ceiling the middleware stops
    redirecting and serves a diagnostic page instead.
    """

    def __init__(self, app, *, secret: str, cookie_secure: bool = False) -> None:  # type: ignore[override]
        super().__init__(app)
        self.secret = secret
        self.cookie_secure = cookie_secure

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        gate: AuthGate = request.app.state.gate
        path = request.url.path
        if not gate.policy.is_gated(path):
            return await call_next(request)

        guard = decode_redirect_guard(request.cookies.get(GUARD_COOKIE), self.secret)
        # Only page loads are diverted; form posts still reach their handlers.
        if guard and request.method in NAVIGATION_METHODS and guard.count >= gate.policy.max_redirects:
            logger.warning(
                "route_gate.loop_broken",
                extra={"extra_data": {"path": path, "redirects": guard.count, "origin": guard.path}},
            )
            response = self._diagnostic(request, guard.count)
            response.delete_cookie(GUARD_COOKIE, path="/")
            return response

        if gate.classify(path) not in {Access.PROTECTED, Access.SEMI_PROTECTED}:
            return await call_next(request)

        result = await gate.authenticate(RequestContext.from_request(request))
        if not result.allowed:
            return self._redirect_to_login(request, guard)

        request.state.user = result.user
        if result.user:
            request.state.principal = result.user.email or result.user.id
            principal_ctx_var.set(request.state.principal)
        response = await call_next(request)
        if guard:
            response.delete_cookie(GUARD_COOKIE, path="/")
        if result.refreshed and result.session is not None:
            request.app.state.session_store.persist(response, result.session)
        return response

    def _redirect_to_login(self, request: Request, guard: RedirectGuard | None) -> Response:
        path = request.url.path
        count = guard.count + 1 if guard and guard.path == path else 1
        origin = path + (f"?{request.url.query}" if request.url.query else "")
        response = RedirectResponse(url=f"{LOGIN_PATH}?from={quote(origin, safe='')}", status_code=302)
        response.set_cookie(
            GUARD_COOKIE,
            encode_redirect_guard(RedirectGuard(path=path, count=count), self.secret),
            max_age=int(GUARD_TTL.total_seconds()),
            httponly=True,
            secure=self.cookie_secure,
            samesite="lax",
            path="/",
        )
        logger.info("route_gate.redirect", extra={"extra_data": {"path": path, "redirects": count}})
        return response

    def _diagnostic(self, request: Request, redirect_count: int) -> Response:
        settings = request.app.state.settings
        context = {
            "redirect_count": redirect_count,
            "supabase_url_set": bool(settings.SUPABASE_URL),
            "supabase_key_set": bool(settings.SUPABASE_ANON_KEY),
            "url": str(request.url),
            "path": request.url.path,
            "cookie_names": sorted(request.cookies),
            "host": request.headers.get("host") or "Unknown",
            "auth_header": bool(request.headers.get("authorization")),
        }
        return templates.TemplateResponse(request, "admin/gate_diagnostic.html", context, status_code=200)
