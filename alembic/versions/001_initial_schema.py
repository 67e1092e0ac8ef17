"""Initial schema - marketplace tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- restaurants ---
    op.create_table(
        "restaurants",
        sa.Column("restaurant_id", sa.String(32), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("business_name", sa.String(200), nullable=False),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("cuisine_type", sa.String(100), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("restaurant_id"),
        sa.UniqueConstraint("user_id", name="uq_restaurant_user"),
    )

    # --- influencers ---
    op.create_table(
        "influencers",
        sa.Column("influencer_id", sa.String(32), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("display_name", sa.String(200), nullable=False),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("instagram_handle", sa.String(100), nullable=True),
        sa.Column("tiktok_handle", sa.String(100), nullable=True),
        sa.Column("xhs_handle", sa.String(100), nullable=True),
        sa.Column("youtube_handle", sa.String(100), nullable=True),
        sa.Column("instagram_followers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tiktok_followers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("xhs_followers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("youtube_followers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tier", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("influencer_id"),
        sa.UniqueConstraint("user_id", name="uq_influencer_user"),
    )
    op.create_index("ix_influencers_tier", "influencers", ["tier"])

    # --- campaigns ---
    op.create_table(
        "campaigns",
        sa.Column("campaign_id", sa.String(32), nullable=False),
        sa.Column("restaurant_id", sa.String(32), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("budget_per_influencer", sa.Float(), nullable=False),
        sa.Column("meal_value", sa.Float(), nullable=True),
        sa.Column("max_influencers", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("requirements", sa.Text(), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("target_tiers", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("campaign_id"),
        sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.restaurant_id"]),
    )
    op.create_index("ix_campaigns_restaurant", "campaigns", ["restaurant_id"])
    op.create_index("ix_campaigns_status", "campaigns", ["status"])

    # --- applications ---
    op.create_table(
        "applications",
        sa.Column("application_id", sa.String(32), nullable=False),
        sa.Column("campaign_id", sa.String(32), nullable=False),
        sa.Column("influencer_id", sa.String(32), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("application_id"),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.campaign_id"]),
        sa.ForeignKeyConstraint(["influencer_id"], ["influencers.influencer_id"]),
        sa.UniqueConstraint("campaign_id", "influencer_id", name="uq_application_pair"),
    )
    op.create_index(
        "ix_applications_campaign_status", "applications", ["campaign_id", "status"]
    )

    # --- commissions ---
    op.create_table(
        "commissions",
        sa.Column("commission_id", sa.String(32), nullable=False),
        sa.Column("campaign_id", sa.String(32), nullable=False),
        sa.Column("restaurant_id", sa.String(32), nullable=False),
        sa.Column("influencer_id", sa.String(32), nullable=False),
        sa.Column("application_id", sa.String(32), nullable=True),
        sa.Column("campaign_amount", sa.Float(), nullable=False),
        sa.Column("commission_rate", sa.Float(), nullable=False),
        sa.Column("commission_amount", sa.Float(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("commission_id"),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.campaign_id"]),
        sa.UniqueConstraint("campaign_id", "influencer_id", name="uq_commission_pair"),
    )
    op.create_index(
        "ix_commissions_restaurant_status", "commissions", ["restaurant_id", "status"]
    )

    # --- follower_update_requests ---
    op.create_table(
        "follower_update_requests",
        sa.Column("request_id", sa.String(32), nullable=False),
        sa.Column("influencer_id", sa.String(32), nullable=False),
        sa.Column("platform", sa.String(20), nullable=False),
        sa.Column("current_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("requested_count", sa.Integer(), nullable=False),
        sa.Column("evidence_url", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("reviewed_by", sa.String(64), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("request_id"),
        sa.ForeignKeyConstraint(["influencer_id"], ["influencers.influencer_id"]),
    )
    op.create_index(
        "ix_follower_requests_status", "follower_update_requests", ["status"]
    )


def downgrade() -> None:
    op.drop_table("follower_update_requests")
    op.drop_table("commissions")
    op.drop_table("applications")
    op.drop_table("campaigns")
    op.drop_table("influencers")
    op.drop_table("restaurants")
