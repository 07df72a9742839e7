from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    id: str
    email: Optional[str] = None


class Session(BaseModel):
    """Token pair issued by the identity provider for a signed-in user."""

    access_token: str
    refresh_token: str = ""
    token_type: str = "bearer"
    expires_in: int = 0
    expires_at: Optional[int] = None
    user: User


class LoginRequest(BaseModel):
    email: str = Field(default="")
    password: str = Field(default="")

    model_config = {
        "json_schema_extra": {
            "example": {"email": "owner@example.com", "password": "correct horse battery staple"}
        },
    }


class SessionStatus(BaseModel):
    authenticated: bool
    user: Optional[User] = None
    expires_at: Optional[int] = None
