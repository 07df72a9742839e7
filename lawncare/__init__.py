"""Application factory and top-level wiring for the lawn care site.

``create_app`` brings together configuration, the database, the auth gate,
the hosted auth/storage clients, HTML templates, routers and error handling.
The engine, session factory, gate, session store and storage client live on ``app.state`` so handlers
receive them as dependencies and tests can swap them out.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import AppSettings, settings
from .core.errors import (
    SiteError,
    http_exception_handler,
    site_error_handler,
    store_error_handler,
    validation_exception_handler,
)
from .core.gate import AuthGate, GatePolicy
from .db.session import Base, make_engine, make_session_factory
from .middlewares import RequestIdMiddleware, RouteGateMiddleware, SecurityHeadersMiddleware

# Importing the models registers their tables on ``Base.metadata``.
from .models import contact as _contact  # noqa: F401
from .models import gallery as _gallery  # noqa: F401
from .models import service as _service  # noqa: F401
from .models import site_settings as _site_settings  # noqa: F401
from .routers import admin_ui, api_auth, api_contact, api_gallery, api_services, api_settings, auth_ui, pages
from .services.identity import IdentityClient
from .services.session_store import SessionStore
from .services.storage import StorageClient


def create_app(app_settings: AppSettings | None = None) -> FastAPI:
    cfg = app_settings or settings
    app = FastAPI(title=cfg.APP_NAME)

    # ---------- collaborators ----------
    identity = IdentityClient(cfg.SUPABASE_URL, cfg.SUPABASE_ANON_KEY, timeout=cfg.HTTP_TIMEOUT_SECONDS)
    session_store = SessionStore(
        identity,
        jwt_secret=cfg.SUPABASE_JWT_SECRET,
        cookie_secure=cfg.SESSION_COOKIE_SECURE,
        cookie_max_age=cfg.SESSION_MAX_AGE,
    )
    storage = StorageClient(
        cfg.SUPABASE_URL, cfg.SUPABASE_ANON_KEY, cfg.STORAGE_BUCKET, timeout=cfg.HTTP_TIMEOUT_SECONDS
    )
    app.state.settings = cfg
    app.state.session_store = session_store
    app.state.storage = storage
    app.state.gate = AuthGate(GatePolicy.from_settings(cfg), session_store)

    # ---------- database ----------
    engine = make_engine(cfg.database_url)
    Base.metadata.create_all(bind=engine)
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)

    # ---------- static ----------
    if cfg.static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=str(cfg.static_dir)), name="static")

    # ---------- middleware (last added runs first) ----------
    app.add_middleware(RouteGateMiddleware, secret=cfg.APP_SECRET, cookie_secure=cfg.SESSION_COOKIE_SECURE)
    image_hosts = (storage.public_host,) if storage.public_host else ()
    app.add_middleware(SecurityHeadersMiddleware, image_hosts=image_hosts)
    if cfg.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cfg.allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_middleware(RequestIdMiddleware)

    # ---------- exception handling ----------
    app.add_exception_handler(SiteError, site_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)

    # ---------- routers ----------
    app.include_router(api_auth.router)
    app.include_router(api_services.router)
    app.include_router(api_gallery.router)
    app.include_router(api_settings.router)
    app.include_router(api_contact.router)
    app.include_router(auth_ui.router)
    app.include_router(admin_ui.router)
    app.include_router(pages.router)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, bool]:
        return {"ok": True}

    return app


__all__ = ["create_app"]
