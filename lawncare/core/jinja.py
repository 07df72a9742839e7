"""Jinja2 environment shared by every HTML router.

Templates are the presentation layer. This module builds the templates object
once per router module and registers the filters the pages rely on.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from fastapi.templating import Jinja2Templates

from .config import settings

_LOCAL_TZ = ZoneInfo(settings.TZ) if settings.TZ else None

CATEGORY_LABELS = {
    "lawn-maintenance": "Lawn Maintenance",
    "landscaping": "Landscaping",
    "fertilization": "Fertilization",
    "cleanup": "Cleanup",
    "other": "Other",
}


def _to_dt(value: Any) -> datetime | None:
    """Convert ISO strings (``...Z`` included) into local, timezone-aware datetimes."""

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None and _LOCAL_TZ:
        dt = dt.replace(tzinfo=_LOCAL_TZ)
    if _LOCAL_TZ:
        dt = dt.astimezone(_LOCAL_TZ)
    return dt


def _fmt_dt(value: Any, fmt: str = "%b %d, %Y %I:%M %p") -> str:
    dt = _to_dt(value)
    return dt.strftime(fmt) if dt else ""


def _fmt_date(value: Any, fmt: str = "%b %d, %Y") -> str:
    dt = _to_dt(value)
    return dt.strftime(fmt) if dt else ""


def _category_label(value: Any) -> str:
    """Map a category slug to its display label, title-casing unknown slugs."""

    if not value:
        return ""
    slug = str(value)
    return CATEGORY_LABELS.get(slug, slug.replace("-", " ").title())


def get_templates() -> Jinja2Templates:
    """Create a ``Jinja2Templates`` instance with our standard filters registered."""

    templates = Jinja2Templates(directory=str(settings.templates_dir))
    env = templates.env
    env.filters["fmt_dt"] = _fmt_dt
    env.filters["fmt_date"] = _fmt_date
    env.filters["category_label"] = _category_label
    env.globals["categories"] = CATEGORY_LABELS
    return templates
