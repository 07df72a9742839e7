"""SQLAlchemy engine construction and the per-request session dependency.

``create_app`` builds one engine per application from its settings and keeps
it, with its session factory, on ``app.state``. ``get_db`` reads them from
there, so two apps with different ``DB_URL`` values never share a database.
"""

from __future__ import annotations

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def _is_memory_sqlite(url: str) -> bool:
    return url in {"sqlite://", "sqlite:///:memory:"}


def make_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    # SQLite connections must be shareable across FastAPI worker threads.
    connect_args = {"check_same_thread": False}
    if _is_memory_sqlite(url):
        # One connection, or every checkout would see a fresh empty database.
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, connect_args=connect_args)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """FastAPI dependency that yields a session and guarantees cleanup."""

    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
