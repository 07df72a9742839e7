"""Browser sign-in, sign-out and post-login session check."""

from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from ..core.errors import ConfigError, SiteError, Unauthorized, UpstreamError, ValidationError
from ..core.jinja import get_templates
from ..deps.auth import get_session_store
from ..middlewares.route_gate import GUARD_COOKIE
from ..services.session_store import SessionStore, discover_credentials

router = APIRouter()
templates = get_templates()

DEFAULT_DESTINATION = "/admin/dashboard"


def _safe_destination(value: str | None) -> str:
    """Only same-site absolute paths are accepted as post-login destinations."""

    value = (value or "").strip()
    if not value.startswith("/") or value.startswith("//") or value.startswith("/admin/login"):
        return DEFAULT_DESTINATION
    return value


def _credentials(request: Request):
    return discover_credentials(request.cookies, request.headers.get("authorization"))


@router.get("/admin/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    from_: str = Query("", alias="from"),
    store: SessionStore = Depends(get_session_store),
):
    destination = _safe_destination(from_)
    if await store.is_authenticated(_credentials(request)):
        return RedirectResponse(url=destination, status_code=302)
    return templates.TemplateResponse(
        request, "login.html", {"destination": destination, "email": "", "error": ""}
    )


@router.post("/admin/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    from_: str = Form("", alias="from"),
    store: SessionStore = Depends(get_session_store),
):
    destination = _safe_destination(from_)
    try:
        session = await store.sign_in(email, password)
    except (ValidationError, Unauthorized, UpstreamError, ConfigError) as exc:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"destination": destination, "email": email, "error": exc.message},
            status_code=exc.status_code,
        )
    response = RedirectResponse(url=f"/auth/verify?to={quote(destination, safe='/')}", status_code=303)
    store.persist(response, session)
    response.delete_cookie(GUARD_COOKIE, path="/")
    return response


@router.get("/admin/logout", response_class=HTMLResponse)
def logout_page(request: Request):
    return templates.TemplateResponse(request, "logout.html", {"error": ""})


@router.post("/admin/logout", response_class=HTMLResponse)
async def logout(request: Request, store: SessionStore = Depends(get_session_store)):
    try:
        await store.sign_out(_credentials(request).access_token)
    except SiteError as exc:
        # The provider still holds the session, but this browser forgets it.
        response = templates.TemplateResponse(
            request,
            "logout.html",
            {"error": f"You have been signed out here, but the sign-in service reported: {exc.message}"},
            status_code=exc.status_code,
        )
    else:
        response = RedirectResponse(url="/admin/login", status_code=303)
    store.clear(response)
    return response


@router.get("/auth/verify", response_class=HTMLResponse)
async def verify_session(
    request: Request,
    to: str = Query(DEFAULT_DESTINATION),
    store: SessionStore = Depends(get_session_store),
):
    destination = _safe_destination(to)
    session = await store.get_session(_credentials(request))
    if session is None:
        return templates.TemplateResponse(
            request,
            "verify.html",
            {"destination": destination, "error": "We couldn't confirm your session. Please sign in again."},
            status_code=401,
        )
    return RedirectResponse(url=destination, status_code=303)
