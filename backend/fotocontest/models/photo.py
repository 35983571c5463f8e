from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Text, DateTime, Uuid, CheckConstraint, func
from fotocontest.db import Base

class Photo(Base):
    __tablename__ = "photos"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str] = mapped_column(String(80), nullable=False)
    last_name: Mapped[str] = mapped_column(String(80), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)  # owner contact, admin only
    image_url: Mapped[str] = mapped_column(Text(), nullable=False)
    storage_key: Mapped[str | None] = mapped_column(Text(), nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # Only ever adjusted through services.ledger increment/decrement
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("votes >= 0", name="ck_photos_votes_non_negative"),
    )

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
