from __future__ import annotations

from sqlalchemy import Column, Integer, Text

from ..db.session import Base


class GalleryImage(Base):
    __tablename__ = "gallery_images"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(Text, nullable=False, index=True)
    image_url = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False, index=True)


__all__ = ["GalleryImage"]
