from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ContactIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    service: Optional[str] = None
    message: Optional[str] = None


class ContactUpdate(BaseModel):
    # ``id`` is only read by the collection-level PUT /api/contact.
    id: Optional[int] = None
    read: Optional[bool] = None


class ContactOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str = ""
    service: str = ""
    message: str
    created_at: str
    read: bool = False


class ContactCreated(BaseModel):
    success: bool = True
    id: int
