from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class GalleryImageIn(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None


class GalleryImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str = ""
    image_url: str
    category: str
    created_at: str


class UploadOut(BaseModel):
    image_url: str
    path: str
