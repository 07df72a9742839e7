"""CRUD helpers for the services shown on the public site."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.errors import require_fields
from ..models.service import Service
from ._time import utcnow

REQUIRED_FIELDS = ("name", "description", "category")
REQUIRED_MESSAGE = "Name, description, and category are required"


def validate_service(payload: dict) -> None:
    require_fields(payload, REQUIRED_FIELDS, REQUIRED_MESSAGE)


def _clean_features(value) -> list[str]:
    if not value:
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def _apply(service: Service, payload: dict) -> None:
    service.name = payload["name"].strip()
    service.description = payload["description"].strip()
    service.category = payload["category"].strip()
    service.price_range = (payload.get("price_range") or "").strip()
    service.image_url = (payload.get("image_url") or "").strip()
    service.features = _clean_features(payload.get("features"))


def list_services(db: Session) -> list[Service]:
    return list(db.execute(select(Service).order_by(Service.id)).scalars().all())


def get_service(db: Session, service_id: int) -> Service | None:
    return db.get(Service, service_id)


def create_service(db: Session, payload: dict) -> Service:
    validate_service(payload)
    service = Service(created_at=utcnow())
    _apply(service, payload)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def update_service(db: Session, service: Service, payload: dict) -> Service:
    # PUT replaces the record, so the same fields are required as on create.
    validate_service(payload)
    _apply(service, payload)
    db.commit()
    db.refresh(service)
    return service


def delete_service(db: Session, service: Service) -> None:
    db.delete(service)
    db.commit()


def count_services(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(Service)) or 0
