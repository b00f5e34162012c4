from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

revision = "0002_street_interactions"
down_revision = "0001_create_schema"
branch_labels = None
depends_on = None


def _json():
    return JSONB().with_variant(sa.JSON(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "street_interactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("campaign_id", sa.Integer(), sa.ForeignKey("campaigns.id"), nullable=False),
        sa.Column("agent_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=True),
        sa.Column("customer_type", sa.String(30), nullable=False, server_default="PROSPECT"),
        sa.Column("location", _json(), nullable=True),
        sa.Column("customer_data", _json(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="IN_PROGRESS"),
        sa.Column("start_time", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("end_time", sa.DateTime(), nullable=True),
        sa.Column("outcome", sa.String(20), nullable=True),
        sa.Column("follow_up_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("quality_metrics", _json(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_street_interactions_company_id", "street_interactions", ["company_id"])
    op.create_index("ix_street_interactions_campaign_id", "street_interactions", ["campaign_id"])
    op.create_index("ix_street_interactions_agent_id", "street_interactions", ["agent_id"])
    op.create_index("ix_street_interactions_status", "street_interactions", ["status"])
    op.create_index("ix_street_interactions_created_at", "street_interactions", ["created_at"])


def downgrade() -> None:
    op.drop_table("street_interactions")
