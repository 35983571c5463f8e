from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261001_0003"
down_revision = "20261001_0002"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "pending_confirmations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("voter_key", sa.String(360), nullable=False),
        sa.Column("identity_kind", sa.String(16), nullable=False),
        sa.Column("voter_value", sa.String(320), nullable=False),
        sa.Column("photo_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("photos.id", ondelete="CASCADE"), nullable=False),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_pending_confirmations_token_hash", "pending_confirmations", ["token_hash"], unique=True)
    op.create_index("ix_pending_confirmations_voter_key", "pending_confirmations", ["voter_key"])
    op.create_index("ix_pending_confirmations_photo_id", "pending_confirmations", ["photo_id"])
    # purge job scans by expiry
    op.create_index("ix_pending_confirmations_expires_at", "pending_confirmations", ["expires_at"])

def downgrade() -> None:
    op.drop_index("ix_pending_confirmations_expires_at", table_name="pending_confirmations")
    op.drop_index("ix_pending_confirmations_photo_id", table_name="pending_confirmations")
    op.drop_index("ix_pending_confirmations_voter_key", table_name="pending_confirmations")
    op.drop_index("ix_pending_confirmations_token_hash", table_name="pending_confirmations")
    op.drop_table("pending_confirmations")
