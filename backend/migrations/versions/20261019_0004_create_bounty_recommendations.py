from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261019_0004"
down_revision = "20261019_0003"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "bounty_recommendations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("user_profiles.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("bounty_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bounties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("match_score", sa.Float(), nullable=False),
        sa.Column("match_reasons", postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("platform_match", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("content_style_match", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_calculated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("user_id", "bounty_id", name="uq_recommendation_user_bounty"),
    )
    op.create_index("ix_bounty_recommendations_user_id", "bounty_recommendations", ["user_id"])
    op.create_index("ix_bounty_recommendations_bounty_id", "bounty_recommendations", ["bounty_id"])
    op.create_index(
        "ix_bounty_recommendations_user_calculated", "bounty_recommendations", ["user_id", "last_calculated_at"]
    )

def downgrade() -> None:
    op.drop_index("ix_bounty_recommendations_user_calculated", table_name="bounty_recommendations")
    op.drop_index("ix_bounty_recommendations_bounty_id", table_name="bounty_recommendations")
    op.drop_index("ix_bounty_recommendations_user_id", table_name="bounty_recommendations")
    op.drop_table("bounty_recommendations")
