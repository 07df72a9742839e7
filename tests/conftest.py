import json
import os
import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from lawncare import create_app
from lawncare.core.config import AppSettings
from lawncare.core.gate import AuthGate, GatePolicy
from lawncare.db.session import Base, get_db
from lawncare.services.identity import IdentityClient
from lawncare.services.session_store import SessionStore
from lawncare.services.storage import StorageClient

# Ensure models are registered so metadata tables are created
from lawncare.models import contact as contact_model  # noqa: F401
from lawncare.models import gallery as gallery_model  # noqa: F401
from lawncare.models import service as service_model  # noqa: F401
from lawncare.models import site_settings as site_settings_model  # noqa: F401

PROVIDER_URL = "https://project.example.test"
ANON_KEY = "anon-key"
GOOD_TOKEN = "good-token"
GOOD_REFRESH = "good-refresh"
OWNER = {"id": "user-1", "email": "owner@example.com"}
OWNER_PASSWORD = "hunter22"


def session_payload(access_token=GOOD_TOKEN, refresh_token=GOOD_REFRESH):
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "expires_in": 3600,
        "user": OWNER,
    }


def identity_handler(request: httpx.Request) -> httpx.Response:
    """Stand-in for the hosted auth REST API."""

    path = request.url.path
    bearer = request.headers.get("authorization", "").removeprefix("Bearer ")
    if path == "/auth/v1/user":
        if bearer == GOOD_TOKEN:
            return httpx.Response(200, json=OWNER)
        return httpx.Response(401, json={"msg": "invalid JWT"})
    if path == "/auth/v1/token":
        grant = request.url.params.get("grant_type")
        data = json.loads(request.content or b"{}")
        if grant == "password" and data.get("email") == OWNER["email"] and data.get("password") == OWNER_PASSWORD:
            return httpx.Response(200, json=session_payload())
        if grant == "refresh_token" and data.get("refresh_token") == GOOD_REFRESH:
            return httpx.Response(200, json=session_payload(access_token="refreshed-token"))
        return httpx.Response(400, json={"error_description": "Invalid login credentials"})
    if path == "/auth/v1/logout":
        return httpx.Response(204)
    return httpx.Response(404)


def storage_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.startswith("/storage/v1/object/images/"):
        return httpx.Response(200, json={"Key": request.url.path})
    return httpx.Response(404)


@pytest.fixture()
def app_settings():
    return AppSettings(
        DB_URL="sqlite://",
        SUPABASE_URL=PROVIDER_URL,
        SUPABASE_ANON_KEY=ANON_KEY,
        SKIP_AUTH_FOR_LOCALHOST=False,
        APP_SECRET="test-secret",
        STORAGE_BUCKET="images",
    )


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def session_store():
    identity = IdentityClient(PROVIDER_URL, ANON_KEY, transport=httpx.MockTransport(identity_handler))
    return SessionStore(identity)


@pytest.fixture()
def app(app_settings, db_session, session_store):
    application = create_app(app_settings)
    application.state.session_store = session_store
    application.state.gate = AuthGate(GatePolicy.from_settings(app_settings), session_store)
    application.state.storage = StorageClient(
        PROVIDER_URL, ANON_KEY, "images", transport=httpx.MockTransport(storage_handler)
    )

    def _get_db():
        yield db_session

    application.dependency_overrides[get_db] = _get_db
    return application


@pytest.fixture()
def client(app):
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client


@pytest.fixture()
def admin_client(client):
    client.cookies.set("sb-access-token", GOOD_TOKEN)
    return client


@pytest.fixture()
def auth_headers():
    return {"Authorization": f"Bearer {GOOD_TOKEN}"}
