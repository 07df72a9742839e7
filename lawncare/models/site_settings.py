"""SQLAlchemy model for the single row of site-wide settings."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, Integer, Text

from ..db.session import Base


class SiteSettings(Base):
    """Business details and theme colors. The table holds at most one row."""

    __tablename__ = "site_settings"

    id = Column(Integer, primary_key=True)
    site_name = Column(Text, nullable=False)
    contact_email = Column(Text, nullable=True)
    contact_phone = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    business_hours = Column(Text, nullable=True)
    maintenance_mode = Column(Boolean, nullable=False, default=False)
    primary_color = Column(Text, nullable=True)
    secondary_color = Column(Text, nullable=True)
    updated_at = Column(Text, nullable=True)


__all__ = ["SiteSettings"]
