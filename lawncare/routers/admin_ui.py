"""Admin back office pages and their form actions.

Access control happens in ``RouteGateMiddleware`` before any handler here runs;
the handlers talk to the CRUD layer directly and surface errors inline.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from ..core.errors import NotFound, SiteError, ValidationError
from ..core.jinja import get_templates
from ..crud.contact import count_unread, delete_submission, get_submission, list_submissions, mark_read
from ..crud.gallery import (
    count_gallery_images,
    create_gallery_image,
    delete_gallery_image,
    get_gallery_image,
    list_gallery_images,
    update_gallery_image,
    validate_gallery_image,
)
from ..crud.services import count_services, create_service, delete_service, get_service, list_services, update_service
from ..crud.site_settings import save_site_settings, site_settings_or_default
from ..db.session import get_db
from ..deps.auth import get_storage
from ..services.session_store import discover_credentials
from ..services.storage import StorageClient, object_path_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")
templates = get_templates()


def _render(request: Request, name: str, context: dict, status_code: int = 200):
    context = {"user": getattr(request.state, "user", None), **context}
    return templates.TemplateResponse(request, f"admin/{name}", context, status_code=status_code)


def _features_from_text(value: str) -> list[str]:
    return [line.strip() for line in (value or "").splitlines() if line.strip()]


def _access_token(request: Request) -> str | None:
    return discover_credentials(request.cookies, request.headers.get("authorization")).access_token


@router.get("")
def admin_root():
    return RedirectResponse(url="/admin/dashboard", status_code=302)


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard_page(request: Request, db: Session = Depends(get_db)):
    stats = {
        "services": count_services(db),
        "gallery_images": count_gallery_images(db),
        "unread_submissions": count_unread(db),
    }
    return _render(request, "dashboard.html", {"stats": stats})


# ---------- services ----------


@router.get("/services", response_class=HTMLResponse)
def services_admin_page(request: Request, db: Session = Depends(get_db)):
    return _render(request, "services.html", {"services": list_services(db)})


@router.get("/services/new", response_class=HTMLResponse)
def service_new_page(request: Request):
    return _render(request, "service_form.html", {"service": None, "form": {}, "error": ""})


@router.post("/services/new", response_class=HTMLResponse)
def service_create(
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    price_range: str = Form(""),
    category: str = Form(""),
    image_url: str = Form(""),
    features: str = Form(""),
    db: Session = Depends(get_db),
):
    form = {
        "name": name,
        "description": description,
        "price_range": price_range,
        "category": category,
        "image_url": image_url,
        "features": _features_from_text(features),
    }
    try:
        create_service(db, form)
    except ValidationError as exc:
        return _render(request, "service_form.html", {"service": None, "form": form, "error": exc.message}, 400)
    return RedirectResponse(url="/admin/services", status_code=303)


@router.get("/services/edit/{service_id}", response_class=HTMLResponse)
def service_edit_page(service_id: int, request: Request, db: Session = Depends(get_db)):
    service = get_service(db, service_id)
    if not service:
        raise NotFound("Service not found")
    form = {
        "name": service.name,
        "description": service.description,
        "price_range": service.price_range,
        "category": service.category,
        "image_url": service.image_url,
        "features": list(service.features or []),
    }
    return _render(request, "service_form.html", {"service": service, "form": form, "error": ""})


@router.post("/services/edit/{service_id}", response_class=HTMLResponse)
def service_update(
    service_id: int,
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    price_range: str = Form(""),
    category: str = Form(""),
    image_url: str = Form(""),
    features: str = Form(""),
    db: Session = Depends(get_db),
):
    service = get_service(db, service_id)
    if not service:
        raise NotFound("Service not found")
    form = {
        "name": name,
        "description": description,
        "price_range": price_range,
        "category": category,
        "image_url": image_url,
        "features": _features_from_text(features),
    }
    try:
        update_service(db, service, form)
    except ValidationError as exc:
        db.rollback()
        return _render(request, "service_form.html", {"service": service, "form": form, "error": exc.message}, 400)
    return RedirectResponse(url="/admin/services", status_code=303)


@router.post("/services/{service_id}/delete")
def service_delete(service_id: int, db: Session = Depends(get_db)):
    service = get_service(db, service_id)
    if not service:
        raise NotFound("Service not found")
    delete_service(db, service)
    return RedirectResponse(url="/admin/services", status_code=303)


# ---------- gallery ----------


@router.get("/gallery", response_class=HTMLResponse)
def gallery_admin_page(request: Request, category: str = Query("all"), db: Session = Depends(get_db)):
    images = list_gallery_images(db, category=category)
    return _render(request, "gallery.html", {"images": images, "selected": category or "all"})


@router.get("/gallery/new", response_class=HTMLResponse)
def gallery_new_page(request: Request):
    return _render(request, "gallery_form.html", {"image": None, "form": {}, "error": ""})


async def _upload(request: Request, storage: StorageClient, file: UploadFile | None) -> str | None:
    if file is None or not file.filename:
        return None
    content = await file.read()
    return await storage.upload(
        object_path_for(file.filename), content, file.content_type, access_token=_access_token(request)
    )


@router.post("/gallery/new", response_class=HTMLResponse)
async def gallery_create(
    request: Request,
    title: str = Form(""),
    description: str = Form(""),
    category: str = Form(""),
    file: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    form = {"title": title, "description": description, "category": category}
    if not title.strip() or not category.strip() or file is None or not file.filename:
        error = "Please fill in all required fields and upload an image"
        return _render(request, "gallery_form.html", {"image": None, "form": form, "error": error}, 400)
    try:
        image_url = await _upload(request, storage, file)
    except SiteError as exc:
        return _render(request, "gallery_form.html", {"image": None, "form": form, "error": exc.message}, exc.status_code)
    try:
        create_gallery_image(db, {**form, "image_url": image_url})
    except Exception:
        # The object is already in the bucket; nothing removes it.
        logger.warning("Gallery metadata insert failed after upload; orphaned object %s", image_url)
        raise
    return RedirectResponse(url="/admin/gallery", status_code=303)


@router.get("/gallery/edit/{image_id}", response_class=HTMLResponse)
def gallery_edit_page(image_id: int, request: Request, db: Session = Depends(get_db)):
    image = get_gallery_image(db, image_id)
    if not image:
        raise NotFound("Gallery image not found")
    form = {"title": image.title, "description": image.description, "category": image.category}
    return _render(request, "gallery_form.html", {"image": image, "form": form, "error": ""})


@router.post("/gallery/edit/{image_id}", response_class=HTMLResponse)
async def gallery_update(
    image_id: int,
    request: Request,
    title: str = Form(""),
    description: str = Form(""),
    category: str = Form(""),
    file: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    image = get_gallery_image(db, image_id)
    if not image:
        raise NotFound("Gallery image not found")
    form = {"title": title, "description": description, "category": category}
    try:
        validate_gallery_image({**form, "image_url": image.image_url})
        image_url = await _upload(request, storage, file) or image.image_url
        update_gallery_image(db, image, {**form, "image_url": image_url})
    except SiteError as exc:
        db.rollback()
        return _render(request, "gallery_form.html", {"image": image, "form": form, "error": exc.message}, exc.status_code)
    return RedirectResponse(url="/admin/gallery", status_code=303)


@router.post("/gallery/{image_id}/delete")
def gallery_delete(image_id: int, db: Session = Depends(get_db)):
    image = get_gallery_image(db, image_id)
    if not image:
        raise NotFound("Gallery image not found")
    delete_gallery_image(db, image)
    return RedirectResponse(url="/admin/gallery", status_code=303)


# ---------- contact submissions ----------


@router.get("/contact", response_class=HTMLResponse)
def contact_admin_page(request: Request, db: Session = Depends(get_db)):
    return _render(request, "contact.html", {"submissions": list_submissions(db)})


@router.get("/contact/{submission_id}", response_class=HTMLResponse)
def contact_detail_page(submission_id: int, request: Request, db: Session = Depends(get_db)):
    submission = get_submission(db, submission_id)
    if not submission:
        raise NotFound("Contact submission not found")
    mark_read(db, submission)
    return _render(request, "contact_detail.html", {"submission": submission})


@router.post("/contact/{submission_id}/delete")
def contact_delete(submission_id: int, db: Session = Depends(get_db)):
    submission = get_submission(db, submission_id)
    if not submission:
        raise NotFound("Contact submission not found")
    delete_submission(db, submission)
    return RedirectResponse(url="/admin/contact", status_code=303)


# ---------- settings ----------


@router.get("/settings", response_class=HTMLResponse)
def settings_page(request: Request, saved: bool = Query(False), db: Session = Depends(get_db)):
    return _render(request, "settings.html", {"form": site_settings_or_default(db), "error": "", "saved": saved})


@router.post("/settings", response_class=HTMLResponse)
def settings_save(
    request: Request,
    site_name: str = Form(""),
    contact_email: str = Form(""),
    contact_phone: str = Form(""),
    address: str = Form(""),
    business_hours: str = Form(""),
    maintenance_mode: str = Form(""),
    primary_color: str = Form(""),
    secondary_color: str = Form(""),
    db: Session = Depends(get_db),
):
    form = {
        "site_name": site_name,
        "contact_email": contact_email,
        "contact_phone": contact_phone,
        "address": address,
        "business_hours": business_hours,
        "maintenance_mode": bool(maintenance_mode),
        "primary_color": primary_color,
        "secondary_color": secondary_color,
    }
    try:
        save_site_settings(db, form)
    except ValidationError as exc:
        return _render(request, "settings.html", {"form": form, "error": exc.message, "saved": False}, 400)
    return RedirectResponse(url="/admin/settings?saved=true", status_code=303)
