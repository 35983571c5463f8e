from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Literal
from uuid import UUID
from datetime import datetime

IdentityKind = Literal["email", "fingerprint"]
Delivery = Literal["sent", "logged", "fallback", "direct"]

class IdentityIn(BaseModel):
    kind: IdentityKind = "email"
    value: str = Field(min_length=1, max_length=320)

class VoteRequest(BaseModel):
    photo_id: UUID
    identity: IdentityIn

class VoteRequestAccepted(BaseModel):
    photo_id: UUID
    expires_at: datetime
    delivery: Delivery
    # only present when the link was not mailed (dev notifier, failed delivery, fingerprint voter)
    confirmation_url: str | None = None

class ConfirmRequest(BaseModel):
    token: str = Field(min_length=16, max_length=128)

class VoteConfirmed(BaseModel):
    photo_id: UUID
    was_change: bool
    message: str

class MyVote(BaseModel):
    identity_kind: IdentityKind | None = None
    photo_id: UUID | None = None
