from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "bounties",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("creator_id", sa.String(length=64), sa.ForeignKey("user_profiles.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("total_bounty", sa.Numeric(12, 2), nullable=False),
        sa.Column("rate_per_1k_views", sa.Numeric(12, 2), nullable=False),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("company_name", sa.String(length=160), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("total_bounty > 0", name="ck_bounties_total_positive"),
        sa.CheckConstraint("rate_per_1k_views > 0", name="ck_bounties_rate_positive"),
    )
    op.create_index("ix_bounties_creator_id", "bounties", ["creator_id"])

    op.create_table(
        "submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("bounty_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bounties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("user_profiles.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("video_url", sa.Text(), nullable=False),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("validation_explanation", sa.Text(), nullable=True),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cover_image_url", sa.Text(), nullable=True),
        sa.Column("author", sa.String(length=255), nullable=True),
        sa.Column("platform", sa.String(length=16), nullable=True),
        sa.Column("earned_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("bounty_id", "video_url", name="uq_submission_url_per_bounty"),
        sa.CheckConstraint("view_count >= 0", name="ck_submissions_views_nonneg"),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_submissions_status"),
    )
    op.create_index("ix_submissions_bounty_id", "submissions", ["bounty_id"])
    op.create_index("ix_submissions_user_id", "submissions", ["user_id"])

def downgrade() -> None:
    op.drop_index("ix_submissions_user_id", table_name="submissions")
    op.drop_index("ix_submissions_bounty_id", table_name="submissions")
    op.drop_table("submissions")
    op.drop_index("ix_bounties_creator_id", table_name="bounties")
    op.drop_table("bounties")
