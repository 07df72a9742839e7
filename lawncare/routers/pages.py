"""Public marketing pages.

Every page pulls the site settings so the layout can show the business name,
contact details and theme colors. When maintenance mode is on the public pages
answer with a maintenance notice instead; the admin area is unaffected.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import ValidationError
from ..core.jinja import get_templates
from ..crud.contact import create_submission
from ..crud.gallery import list_gallery_images
from ..crud.services import list_services
from ..crud.site_settings import site_settings_or_default
from ..db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()
templates = get_templates()

CONTACT_FAILURE = "Sorry, we couldn't send your message. Please try again or give us a call."


def _render(request: Request, db: Session, name: str, context: dict | None = None, status_code: int = 200):
    site = site_settings_or_default(db)
    if site["maintenance_mode"]:
        return templates.TemplateResponse(request, "maintenance.html", {"site": site}, status_code=503)
    return templates.TemplateResponse(request, name, {"site": site, **(context or {})}, status_code=status_code)


@router.get("/", response_class=HTMLResponse)
def home_page(request: Request, db: Session = Depends(get_db)):
    return _render(request, db, "home.html", {"services": list_services(db)[:3]})


@router.get("/services", response_class=HTMLResponse)
def services_page(request: Request, db: Session = Depends(get_db)):
    return _render(request, db, "services.html", {"services": list_services(db)})


@router.get("/gallery", response_class=HTMLResponse)
def gallery_page(request: Request, category: str = Query("all"), db: Session = Depends(get_db)):
    images = list_gallery_images(db, category=category)
    return _render(request, db, "gallery.html", {"images": images, "selected": category or "all"})


@router.get("/about", response_class=HTMLResponse)
def about_page(request: Request, db: Session = Depends(get_db)):
    return _render(request, db, "about.html")


@router.get("/contact", response_class=HTMLResponse)
def contact_page(request: Request, sent: bool = Query(False), db: Session = Depends(get_db)):
    context = {"form": {}, "error": "", "sent": sent, "services": list_services(db)}
    return _render(request, db, "contact.html", context)


@router.post("/contact", response_class=HTMLResponse)
def contact_submit(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    service: str = Form(""),
    message: str = Form(""),
    db: Session = Depends(get_db),
):
    form = {"name": name, "email": email, "phone": phone, "service": service, "message": message}
    try:
        create_submission(db, form)
    except ValidationError as exc:
        error, status_code = exc.message, 400
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Saving contact submission failed")
        error, status_code = CONTACT_FAILURE, 500
    else:
        return RedirectResponse(url="/contact?sent=true", status_code=303)
    context = {"form": form, "error": error, "sent": False, "services": list_services(db)}
    return _render(request, db, "contact.html", context, status_code=status_code)
