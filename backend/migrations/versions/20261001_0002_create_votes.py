from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261001_0002"
down_revision = "20261001_0001"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "votes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("voter_key", sa.String(360), nullable=False),
        sa.Column("identity_kind", sa.String(16), nullable=False),
        sa.Column("photo_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("photos.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("identity_kind IN ('email','fingerprint')", name="ck_votes_identity_kind"),
    )
    op.create_index("ix_votes_photo_id", "votes", ["photo_id"])
    # one standing vote per identity
    op.create_unique_constraint("uq_vote_once_per_identity", "votes", ["voter_key"])

def downgrade() -> None:
    op.drop_constraint("uq_vote_once_per_identity", "votes", type_="unique")
    op.drop_index("ix_votes_photo_id", table_name="votes")
    op.drop_table("votes")
