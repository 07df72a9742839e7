from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class SiteSettingsIn(BaseModel):
    site_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    business_hours: Optional[str] = None
    maintenance_mode: Optional[bool] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None


class SiteSettingsOut(BaseModel):
    """Settings as served to clients; ``id`` is ``None`` for the built-in defaults."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    site_name: str
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None
    business_hours: Optional[str] = None
    maintenance_mode: bool = False
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    updated_at: Optional[str] = None
