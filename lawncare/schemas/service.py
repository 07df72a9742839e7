"""Pydantic schemas that describe service payloads for the API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ServiceIn(BaseModel):
    # Everything is optional at the schema level so a missing field becomes a
    # 400 from the required-field check instead of a 422 from pydantic.
    name: Optional[str] = None
    description: Optional[str] = None
    price_range: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    features: Optional[list[str]] = None


class ServiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    price_range: str = ""
    category: str
    image_url: str = ""
    features: list[str] = Field(default_factory=list)
    created_at: str
