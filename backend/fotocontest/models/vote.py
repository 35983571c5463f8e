from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, DateTime, ForeignKey, Uuid, UniqueConstraint, func
from fotocontest.db import Base

class Vote(Base):
    """The standing vote of one voter identity. At most one row per voter_key."""
    __tablename__ = "votes"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    voter_key: Mapped[str] = mapped_column(String(360), nullable=False)  # "email:<addr>" | "fingerprint:<id>"
    identity_kind: Mapped[str] = mapped_column(String(16), nullable=False)  # email|fingerprint
    photo_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("photos.id", ondelete="CASCADE"), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("voter_key", name="uq_vote_once_per_identity"),
    )
