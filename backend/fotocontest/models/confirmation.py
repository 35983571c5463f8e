from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, ForeignKey, Uuid, func
from fotocontest.db import Base

class PendingConfirmation(Base):
    """
    An issued, not yet redeemed vote confirmation.
    Only the SHA-256 of the token is stored; the raw token lives in the link.
    Deleted on redemption (success or expiry) or by the purge job.
    """
    __tablename__ = "pending_confirmations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)

    voter_key: Mapped[str] = mapped_column(String(360), index=True, nullable=False)
    identity_kind: Mapped[str] = mapped_column(String(16), nullable=False)
    voter_value: Mapped[str] = mapped_column(String(320), nullable=False)

    photo_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("photos.id", ondelete="CASCADE"), index=True, nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
