from __future__ import annotations
from pydantic import BaseModel, EmailStr, Field
from uuid import UUID
from datetime import datetime


class PhotoPublic(BaseModel):
    id: UUID
    display_name: str
    # 🔒 storage keys and owner email stay server-side
    image_url: str
    votes: int
    created_at: datetime


class PhotoAdmin(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: str | None = None
    image_url: str
    mime_type: str | None = None
    votes: int
    created_at: datetime


class PhotoUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=80)
    last_name: str | None = Field(default=None, min_length=1, max_length=80)
    email: EmailStr | None = None
