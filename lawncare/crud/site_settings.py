"""Read-or-create helpers for the singleton site settings row."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import ValidationError
from ..models.site_settings import SiteSettings
from ._time import utcnow

DEFAULT_SITE_SETTINGS: dict = {
    "site_name": "Lawn Care Pro",
    "contact_email": "info@lawncareproexample.com",
    "contact_phone": "(555) 123-4567",
    "address": "123 Green Street, Anytown, USA 12345",
    "business_hours": "Monday - Friday: 8:00 AM - 6:00 PM, Saturday: 9:00 AM - 4:00 PM, Sunday: Closed",
    "maintenance_mode": False,
    "primary_color": "#16a34a",
    "secondary_color": "#166534",
}

EDITABLE_FIELDS = tuple(DEFAULT_SITE_SETTINGS)


def get_site_settings(db: Session) -> SiteSettings | None:
    return db.execute(select(SiteSettings).order_by(SiteSettings.id).limit(1)).scalars().first()


def site_settings_or_default(db: Session) -> dict:
    """Settings as a plain dict; the built-in defaults (``id`` None) when no row exists."""

    row = get_site_settings(db)
    if row is None:
        return {"id": None, **DEFAULT_SITE_SETTINGS, "updated_at": None}
    return {
        "id": row.id,
        **{field: getattr(row, field) for field in EDITABLE_FIELDS},
        "updated_at": row.updated_at,
    }


def save_site_settings(db: Session, payload: dict) -> SiteSettings:
    """Upsert the singleton row. Only fields present in ``payload`` change on update."""

    site_name = payload.get("site_name")
    if not isinstance(site_name, str) or not site_name.strip():
        raise ValidationError("Site name is required")

    row = get_site_settings(db)
    if row is None:
        values = dict(DEFAULT_SITE_SETTINGS)
        values.update({k: v for k, v in payload.items() if k in EDITABLE_FIELDS and v is not None})
        row = SiteSettings(**values)
        db.add(row)
    else:
        for field in EDITABLE_FIELDS:
            if field in payload and payload[field] is not None:
                setattr(row, field, payload[field])
    row.site_name = site_name.strip()
    row.maintenance_mode = bool(row.maintenance_mode)
    row.updated_at = utcnow()
    db.commit()
    db.refresh(row)
    return row
