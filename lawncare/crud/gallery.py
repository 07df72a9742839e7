"""CRUD helpers for gallery images."""

from __future__ import annotations

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..core.errors import require_fields
from ..models.gallery import GalleryImage
from ._time import utcnow

REQUIRED_FIELDS = ("title", "image_url", "category")
REQUIRED_MESSAGE = "Title, image URL, and category are required"
ALL_CATEGORIES = "all"


def validate_gallery_image(payload: dict) -> None:
    require_fields(payload, REQUIRED_FIELDS, REQUIRED_MESSAGE)


def _apply(image: GalleryImage, payload: dict) -> None:
    image.title = payload["title"].strip()
    image.image_url = payload["image_url"].strip()
    image.category = payload["category"].strip()
    image.description = (payload.get("description") or "").strip()


def list_gallery_images(db: Session, category: str | None = None) -> list[GalleryImage]:
    stmt = select(GalleryImage).order_by(desc(GalleryImage.created_at), desc(GalleryImage.id))
    category = (category or "").strip()
    if category and category != ALL_CATEGORIES:
        stmt = stmt.where(GalleryImage.category == category)
    return list(db.execute(stmt).scalars().all())


def get_gallery_image(db: Session, image_id: int) -> GalleryImage | None:
    return db.get(GalleryImage, image_id)


def create_gallery_image(db: Session, payload: dict) -> GalleryImage:
    validate_gallery_image(payload)
    image = GalleryImage(created_at=utcnow())
    _apply(image, payload)
    db.add(image)
    db.commit()
    db.refresh(image)
    return image


def update_gallery_image(db: Session, image: GalleryImage, payload: dict) -> GalleryImage:
    validate_gallery_image(payload)
    _apply(image, payload)
    db.commit()
    db.refresh(image)
    return image


def delete_gallery_image(db: Session, image: GalleryImage) -> None:
    db.delete(image)
    db.commit()


def count_gallery_images(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(GalleryImage)) or 0
