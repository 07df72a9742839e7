"""SQLAlchemy model for the services offered on the public site."""

from __future__ import annotations

from sqlalchemy import JSON, Column, Integer, Text

from ..db.session import Base


class Service(Base):
    """A lawn care service with its marketing copy and feature bullet points."""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    price_range = Column(Text, nullable=False, default="")
    category = Column(Text, nullable=False, index=True)
    image_url = Column(Text, nullable=False, default="")
    # Ordered list of short feature strings shown as bullets.
    features = Column(JSON, nullable=False, default=list)
    created_at = Column(Text, nullable=False)


__all__ = ["Service"]
