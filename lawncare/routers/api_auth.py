from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from ..deps.auth import get_session_store
from ..middlewares.route_gate import GUARD_COOKIE
from ..schemas.auth import LoginRequest, SessionStatus
from ..services.session_store import SessionStore, discover_credentials

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _credentials(request: Request):
    return discover_credentials(request.cookies, request.headers.get("authorization"))


@router.post("/login", response_model=SessionStatus, summary="Sign in with email and password")
async def api_login(
    payload: LoginRequest,
    response: Response,
    store: SessionStore = Depends(get_session_store),
):
    session = await store.sign_in(payload.email, payload.password)
    store.persist(response, session)
    response.delete_cookie(GUARD_COOKIE, path="/")
    return SessionStatus(authenticated=True, user=session.user, expires_at=session.expires_at)


@router.post("/logout", summary="Revoke the current session")
async def api_logout(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_session_store),
):
    credentials = _credentials(request)
    await store.sign_out(credentials.access_token)
    store.clear(response)
    return {"success": True}


@router.get("/session", response_model=SessionStatus, summary="Report the current session")
async def api_session(request: Request, store: SessionStore = Depends(get_session_store)):
    session = await store.get_session(_credentials(request))
    if session is None:
        return SessionStatus(authenticated=False)
    return SessionStatus(authenticated=True, user=session.user, expires_at=session.expires_at)
