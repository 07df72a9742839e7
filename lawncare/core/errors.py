from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class SiteError(Exception):
    """Base class for every error the site converts into a JSON envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SiteError, ValueError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class NotFound(SiteError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Unauthorized(SiteError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class InvalidCredentials(Unauthorized):
    default_message = "Invalid email or password"


class UpstreamError(SiteError):
    default_message = "Upstream service error"


class SessionCreationFailed(UpstreamError):
    default_message = "Sign in succeeded but no session was returned"


class ConfigError(SiteError):
    default_message = "Server configuration error"


def require_fields(payload: dict[str, Any], fields: tuple[str, ...], message: str) -> None:
    """Raise ``ValidationError`` unless every field holds a non-blank value."""

    for field in fields:
        value = payload.get(field)
        if isinstance(value, str):
            value = value.strip()
        if not value:
            raise ValidationError(message)


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"error": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def site_error_handler(request: Request, exc: SiteError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return ErrorEnvelope(status_code=exc.status_code, message=exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        accept = (request.headers.get("accept") or "").lower()
        path = request.url.path
        if "text/html" in accept and not path.startswith("/api") and not path.startswith("/admin/login"):
            return RedirectResponse(url=f"/admin/login?from={quote(path, safe='')}", status_code=302)
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    return ErrorEnvelope(status_code=exc.status_code, message=message, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorEnvelope(
        status_code=status.HTTP_400_BAD_REQUEST,
        message="Invalid request body",
        details={"errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": list(err.get("loc", ())), "msg": str(err.get("msg", "")), "type": err.get("type", "")}
        for err in exc.errors()
    ]


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return ErrorEnvelope(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, message="Database error")
