from __future__ import annotations

from fastapi import Request, Response

from ..core.gate import AuthGate, AuthResult, RequestContext
from ..middlewares import principal_ctx_var
from ..services.session_store import SessionStore
from ..services.storage import StorageClient


def get_gate(request: Request) -> AuthGate:
    return request.app.state.gate


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_storage(request: Request) -> StorageClient:
    return request.app.state.storage


def set_principal(request: Request, result: AuthResult) -> None:
    principal = (result.user.email or result.user.id) if result.user else f"anonymous:{result.reason}"
    principal_ctx_var.set(principal)
    request.state.principal = principal
    request.state.user = result.user


async def require_admin(request: Request, response: Response) -> AuthResult:
    """Gate for API handlers that mutate data or expose submissions."""

    gate = get_gate(request)
    result = await gate.authenticate(RequestContext.from_request(request))
    if not result.allowed:
        raise result.error
    set_principal(request, result)
    if result.refreshed and result.session is not None:
        get_session_store(request).persist(response, result.session)
    return result
