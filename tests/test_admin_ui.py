import httpx

from conftest import ANON_KEY, OWNER, OWNER_PASSWORD, PROVIDER_URL, identity_handler
from lawncare.core.security import RedirectGuard, decode_redirect_guard, encode_redirect_guard
from lawncare.crud.contact import create_submission, get_submission
from lawncare.crud.gallery import create_gallery_image, get_gallery_image
from lawncare.crud.services import create_service, list_services
from lawncare.crud.site_settings import get_site_settings
from lawncare.middlewares.route_gate import GUARD_COOKIE
from lawncare.services.identity import IdentityClient
from lawncare.services.session_store import SessionStore
from lawncare.services.storage import StorageClient


def test_protected_page_redirects_to_login_with_origin(client):
    response = client.get("/admin/services?page=2")

    assert response.status_code == 302
    assert response.headers["location"] == "/admin/login?from=%2Fadmin%2Fservices%3Fpage%3D2"
    guard = decode_redirect_guard(response.cookies.get(GUARD_COOKIE), "test-secret")
    assert guard == RedirectGuard(path="/admin/services", count=1)


def test_redirect_loop_shows_diagnostic_after_max_redirects(client):
    for expected in (1, 2, 3):
        response = client.get("/admin/settings")
        assert response.status_code == 302
        guard = decode_redirect_guard(client.cookies.get(GUARD_COOKIE), "test-secret")
        assert guard.count == expected

    response = client.get("/admin/settings")

    assert response.status_code == 200
    assert "Sign-in loop detected" in response.text
    assert "sent to the login page 3 times" in response.text
    assert GUARD_COOKIE not in client.cookies

    # Counter was reset, so the next attempt starts over.
    assert client.get("/admin/settings").status_code == 302


def test_redirect_count_restarts_for_a_different_path(client):
    client.get("/admin/settings")
    client.get("/admin/settings")

    client.get("/admin/contact")

    guard = decode_redirect_guard(client.cookies.get(GUARD_COOKIE), "test-secret")
    assert guard == RedirectGuard(path="/admin/contact", count=1)


def test_forged_guard_cookie_is_ignored(client):
    client.cookies.set(GUARD_COOKIE, encode_redirect_guard(RedirectGuard(path="/admin/settings", count=9), "wrong"))

    response = client.get("/admin/settings")

    assert response.status_code == 302


def test_login_page_is_public(client):
    response = client.get("/admin/login", params={"from": "/admin/gallery"})

    assert response.status_code == 200
    assert 'value="/admin/gallery"' in response.text


def test_login_page_redirects_when_already_signed_in(admin_client):
    response = admin_client.get("/admin/login")

    assert response.status_code == 302
    assert response.headers["location"] == "/admin/dashboard"


def test_login_form_success_goes_through_verify(client):
    response = client.post(
        "/admin/login",
        data={"email": "owner@example.com", "password": "hunter22", "from": "/admin/services"},
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/auth/verify?to=/admin/services"
    assert client.cookies.get("sb-access-token") == "good-token"

    verified = client.get(response.headers["location"])
    assert verified.status_code == 303
    assert verified.headers["location"] == "/admin/services"


def test_login_form_failure_rerenders_with_error(client):
    response = client.post("/admin/login", data={"email": "owner@example.com", "password": "wrong"})

    assert response.status_code == 401
    assert "Invalid email or password" in response.text
    assert 'value="owner@example.com"' in response.text


def test_login_rejects_offsite_destination(client):
    response = client.post(
        "/admin/login",
        data={"email": "owner@example.com", "password": "hunter22", "from": "//evil.example"},
    )

    assert response.headers["location"] == "/auth/verify?to=/admin/dashboard"


def test_login_form_posts_through_at_redirect_ceiling(client):
    client.cookies.set(GUARD_COOKIE, encode_redirect_guard(RedirectGuard(path="/admin/settings", count=3), "test-secret"))

    response = client.post(
        "/admin/login",
        data={"email": OWNER["email"], "password": OWNER_PASSWORD, "from": "/admin/settings"},
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/auth/verify?to=/admin/settings"
    assert _cleared(response, GUARD_COOKIE)


def test_redirect_ceiling_still_applies_to_page_loads(client):
    client.cookies.set(GUARD_COOKIE, encode_redirect_guard(RedirectGuard(path="/admin/settings", count=3), "test-secret"))

    response = client.get("/admin/login")

    assert response.status_code == 200
    assert "Sign-in loop detected" in response.text


def test_verify_without_session_is_401(client):
    response = client.get("/auth/verify", params={"to": "/admin/settings"})

    assert response.status_code == 401
    assert "Sign in again" in response.text


def _cleared(response, name):
    return [c for c in response.headers.get_list("set-cookie") if c.startswith(f"{name}=") and "Max-Age=0" in c]


def test_logout_page_asks_before_signing_out(admin_client):
    response = admin_client.get("/admin/logout")

    assert response.status_code == 200
    assert 'method="post" action="/admin/logout"' in response.text
    assert not _cleared(response, "sb-access-token")


def test_logout_clears_cookies(admin_client):
    response = admin_client.post("/admin/logout")

    assert response.status_code == 303
    assert response.headers["location"] == "/admin/login"
    assert _cleared(response, "sb-access-token")
    assert _cleared(response, "sb-refresh-token")


def test_logout_provider_failure_renders_page_and_still_clears_cookies(app, admin_client):
    def failing_logout(request):
        if request.url.path == "/auth/v1/logout":
            return httpx.Response(503, json={"msg": "maintenance"})
        return identity_handler(request)

    app.state.session_store = SessionStore(
        IdentityClient(PROVIDER_URL, ANON_KEY, transport=httpx.MockTransport(failing_logout))
    )

    response = admin_client.post("/admin/logout")

    assert response.status_code == 500
    assert "text/html" in response.headers["content-type"]
    assert "signed out here" in response.text
    assert _cleared(response, "sb-access-token")


def test_dashboard_shows_counts(admin_client, db_session):
    create_service(
        db_session, {"name": "Mowing", "description": "Weekly", "category": "lawn-maintenance"}
    )
    create_submission(db_session, {"name": "A", "email": "a@b.com", "message": "hi"})

    response = admin_client.get("/admin/dashboard")

    assert response.status_code == 200
    assert "Unread messages" in response.text
    assert "owner@example.com" in response.text


def test_refresh_token_only_session_is_renewed(client):
    client.cookies.set("sb-refresh-token", "good-refresh")

    response = client.get("/admin/services")

    assert response.status_code == 200
    assert response.cookies.get("sb-access-token") == "refreshed-token"


def test_admin_root_redirects_to_dashboard(client):
    response = client.get("/admin")

    assert response.status_code == 302
    assert response.headers["location"] == "/admin/dashboard"


def test_service_form_create_and_validation(admin_client, db_session):
    bad = admin_client.post("/admin/services/new", data={"name": "Mowing"})
    assert bad.status_code == 400
    assert "Name, description, and category are required" in bad.text

    good = admin_client.post(
        "/admin/services/new",
        data={
            "name": "Mowing",
            "description": "Weekly cut",
            "category": "lawn-maintenance",
            "features": "Edging\n\nBlowing\n",
        },
    )
    assert good.status_code == 303
    assert good.headers["location"] == "/admin/services"
    (service,) = list_services(db_session)
    assert service.features == ["Edging", "Blowing"]

    edit = admin_client.get(f"/admin/services/edit/{service.id}")
    assert edit.status_code == 200
    assert "Edging\nBlowing" in edit.text


def test_gallery_upload_form_stores_image(admin_client):
    response = admin_client.post(
        "/admin/gallery/new",
        data={"title": "Front yard", "category": "landscaping"},
        files={"file": ("front.png", b"\x89PNG", "image/png")},
    )

    assert response.status_code == 303
    listing = admin_client.get("/admin/gallery", params={"category": "landscaping"})
    assert "Front yard" in listing.text
    assert "/storage/v1/object/public/images/gallery/" in listing.text


def test_gallery_upload_form_requires_file(admin_client):
    response = admin_client.post("/admin/gallery/new", data={"title": "Front yard", "category": "landscaping"})

    assert response.status_code == 400
    assert "upload an image" in response.text


def test_contact_detail_marks_read(admin_client, db_session):
    submission = create_submission(db_session, {"name": "Pat", "email": "pat@example.com", "message": "Quote?"})

    response = admin_client.get(f"/admin/contact/{submission.id}")

    assert response.status_code == 200
    assert "Quote?" in response.text
    db_session.refresh(submission)
    assert get_submission(db_session, submission.id).read is True


def test_settings_form_saves_and_rejects_blank_name(admin_client, db_session):
    bad = admin_client.post("/admin/settings", data={"site_name": ""})
    assert bad.status_code == 400
    assert get_site_settings(db_session) is None

    good = admin_client.post("/admin/settings", data={"site_name": "Green Acres", "maintenance_mode": "1"})
    assert good.status_code == 303
    assert good.headers["location"] == "/admin/settings?saved=true"
    row = get_site_settings(db_session)
    assert row.site_name == "Green Acres"
    assert row.maintenance_mode is True


def test_gallery_edit_validation_failure_skips_upload(app, admin_client, db_session):
    image = create_gallery_image(
        db_session, {"title": "Patio", "category": "hardscaping", "image_url": "https://cdn.example/patio.jpg"}
    )
    uploads = []

    def recording_handler(request):
        uploads.append(request.url.path)
        return httpx.Response(200, json={"Key": request.url.path})

    app.state.storage = StorageClient(PROVIDER_URL, ANON_KEY, "images", transport=httpx.MockTransport(recording_handler))

    response = admin_client.post(
        f"/admin/gallery/edit/{image.id}",
        data={"title": "", "category": "landscaping"},
        files={"file": ("patio.jpg", b"\xff\xd8\xff", "image/jpeg")},
    )

    assert response.status_code == 400
    assert "Title, image URL, and category are required" in response.text
    assert uploads == []
    db_session.refresh(image)
    stored = get_gallery_image(db_session, image.id)
    assert stored.title == "Patio"
    assert stored.image_url == "https://cdn.example/patio.jpg"
