import asyncio
import base64
import json
import time

import httpx
import pytest
from jose import jwt

from conftest import ANON_KEY, GOOD_REFRESH, GOOD_TOKEN, PROVIDER_URL, identity_handler
from lawncare.core.errors import (
    ConfigError,
    InvalidCredentials,
    SessionCreationFailed,
    UpstreamError,
    ValidationError,
)
from lawncare.services.identity import IdentityClient
from lawncare.services.session_store import Credentials, SessionStore, discover_credentials
from lawncare.services.storage import StorageClient, object_path_for


def _identity(handler=identity_handler, base_url=PROVIDER_URL, api_key=ANON_KEY):
    return IdentityClient(base_url, api_key, transport=httpx.MockTransport(handler))


# ---------- credential discovery ----------


def test_discover_prefers_access_cookie():
    creds = discover_credentials({"sb-access-token": "a", "sb-refresh-token": "r"}, "Bearer header")

    assert creds == Credentials(access_token="a", refresh_token="r", source="cookie:sb-access-token")


def test_discover_unpacks_json_and_base64_cookies():
    as_list = discover_credentials({"sb-auth-token": json.dumps(["a1", "r1"])})
    encoded = base64.urlsafe_b64encode(json.dumps({"access_token": "a2", "refresh_token": "r2"}).encode()).decode()
    as_b64 = discover_credentials({"sb-project-auth-token": f"base64-{encoded.rstrip('=')}"})

    assert (as_list.access_token, as_list.refresh_token) == ("a1", "r1")
    assert (as_b64.access_token, as_b64.refresh_token) == ("a2", "r2")
    assert as_b64.source == "cookie:sb-project-auth-token"


def test_discover_falls_back_to_bearer_header():
    creds = discover_credentials({"theme": "dark"}, "Bearer tok")

    assert creds.access_token == "tok"
    assert creds.source == "header"


def test_discover_nothing():
    creds = discover_credentials({}, "Basic abc")

    assert creds.present is False


# ---------- identity client ----------


def test_sign_in_with_password_returns_session_payload():
    data = asyncio.run(_identity().sign_in_with_password("owner@example.com", "hunter22"))

    assert data["access_token"] == GOOD_TOKEN
    assert data["user"]["id"] == "user-1"


def test_sign_in_rejected_is_invalid_credentials():
    with pytest.raises(InvalidCredentials):
        asyncio.run(_identity().sign_in_with_password("owner@example.com", "wrong"))


def test_provider_outage_is_upstream_error():
    def handler(request):
        return httpx.Response(503, json={"msg": "maintenance"})

    with pytest.raises(UpstreamError) as exc:
        asyncio.run(_identity(handler).sign_in_with_password("owner@example.com", "hunter22"))
    assert "maintenance" in exc.value.message


def test_network_failure_is_upstream_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(UpstreamError):
        asyncio.run(_identity(handler).get_user(GOOD_TOKEN))


def test_get_user_rejected_token_is_none():
    assert asyncio.run(_identity().get_user("stale")) is None


def test_unconfigured_identity_raises_config_error():
    with pytest.raises(ConfigError):
        asyncio.run(_identity(base_url="").get_user(GOOD_TOKEN))


def test_sign_out_ignores_expired_token():
    def handler(request):
        return httpx.Response(401)

    asyncio.run(_identity(handler).sign_out("expired"))


def test_sign_out_provider_outage_is_upstream_error():
    def handler(request):
        assert request.url.path == "/auth/v1/logout"
        return httpx.Response(502, json={"msg": "bad gateway"})

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(SessionStore(_identity(handler)).sign_out(GOOD_TOKEN))

    assert excinfo.value.message == "Identity provider error: bad gateway"
    assert excinfo.value.status_code == 500


def test_requests_carry_api_key_and_bearer():
    seen = {}

    def handler(request):
        seen.update(request.headers)
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"id": "user-1"})

    asyncio.run(_identity(handler).get_user("tok"))

    assert seen["apikey"] == ANON_KEY
    assert seen["authorization"] == "Bearer tok"
    assert seen["url"] == f"{PROVIDER_URL}/auth/v1/user"


# ---------- session store ----------


def test_sign_in_trims_and_validates():
    store = SessionStore(_identity())

    with pytest.raises(ValidationError):
        asyncio.run(store.sign_in("  ", "hunter22"))

    session = asyncio.run(store.sign_in(" owner@example.com ", "hunter22"))
    assert session.user.email == "owner@example.com"
    assert session.expires_at is not None


def test_sign_in_without_session_payload_fails():
    def handler(request):
        return httpx.Response(200, json={"user": {"id": "user-1"}})

    with pytest.raises(SessionCreationFailed):
        asyncio.run(SessionStore(_identity(handler)).sign_in("owner@example.com", "hunter22"))


def test_get_session_validates_with_provider():
    store = SessionStore(_identity())

    session = asyncio.run(store.get_session(Credentials(access_token=GOOD_TOKEN)))

    assert session.user.id == "user-1"
    assert session.access_token == GOOD_TOKEN
    assert asyncio.run(store.is_authenticated(Credentials(access_token="stale"))) is False


def test_get_session_refreshes_when_access_token_rejected():
    store = SessionStore(_identity())

    session = asyncio.run(store.get_session(Credentials(access_token="stale", refresh_token=GOOD_REFRESH)))

    assert session.access_token == "refreshed-token"


def test_get_session_swallows_provider_errors():
    def handler(request):
        return httpx.Response(500, json={"msg": "down"})

    store = SessionStore(_identity(handler))

    assert asyncio.run(store.get_session(Credentials(access_token=GOOD_TOKEN))) is None
    assert asyncio.run(store.get_user(Credentials(access_token=GOOD_TOKEN))) is None


def test_local_jwt_verification_skips_provider():
    def handler(request):
        raise AssertionError("provider should not be called")

    secret = "jwt-secret"
    token = jwt.encode(
        {"sub": "user-9", "email": "crew@example.com", "aud": "authenticated", "exp": int(time.time()) + 600},
        secret,
        algorithm="HS256",
    )
    store = SessionStore(_identity(handler), jwt_secret=secret)

    session = asyncio.run(store.get_session(Credentials(access_token=token)))
    assert session.user.id == "user-9"
    assert session.user.email == "crew@example.com"

    expired = jwt.encode({"sub": "user-9", "aud": "authenticated", "exp": int(time.time()) - 10}, secret)
    assert asyncio.run(store.get_session(Credentials(access_token=expired))) is None


# ---------- storage ----------


def test_object_path_is_sanitised_and_unique():
    path = object_path_for("My Yard (1).JPG")

    prefix, _, name = path.partition("/")
    stamp, _, rest = name.partition("-")
    assert prefix == "gallery"
    assert stamp.isdigit()
    assert rest == "My-Yard-1-.JPG"


def test_storage_upload_posts_bytes_and_returns_public_url():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["content_type"] = request.headers["content-type"]
        seen["auth"] = request.headers["authorization"]
        seen["body"] = request.content
        return httpx.Response(200, json={"Key": "x"})

    storage = StorageClient(PROVIDER_URL, ANON_KEY, "images", transport=httpx.MockTransport(handler))

    url = asyncio.run(storage.upload("gallery/1-a.png", b"png", "image/png", access_token="tok"))

    assert url == f"{PROVIDER_URL}/storage/v1/object/public/images/gallery/1-a.png"
    assert seen["url"] == f"{PROVIDER_URL}/storage/v1/object/images/gallery/1-a.png"
    assert seen["content_type"] == "image/png"
    assert seen["auth"] == "Bearer tok"
    assert seen["body"] == b"png"


def test_storage_upload_errors():
    def handler(request):
        return httpx.Response(413, text="too big")

    storage = StorageClient(PROVIDER_URL, ANON_KEY, "images", transport=httpx.MockTransport(handler))

    with pytest.raises(ValidationError):
        asyncio.run(storage.upload("gallery/a.png", b"", "image/png"))
    with pytest.raises(UpstreamError):
        asyncio.run(storage.upload("gallery/a.png", b"x", "image/png"))
    with pytest.raises(ConfigError):
        asyncio.run(StorageClient("", "", "images").upload("gallery/a.png", b"x"))
