"""Initial migration: create clients, brand_kits, campaign_batches, and generations tables

Revision ID: 20260101_000000
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20260101_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    # Create clients table
    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create brand_kits table
    op.create_table(
        "brand_kits",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("tagline", sa.Text(), nullable=True),
        sa.Column("tone_of_voice", sa.Text(), nullable=True),
        sa.Column(
            "primary_colors",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_brand_kits_client_id"), "brand_kits", ["client_id"], unique=True)

    # Create campaign_batches table
    op.create_table(
        "campaign_batches",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("goal", sa.Text(), nullable=True),
        sa.Column("total_items", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="running"),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('running', 'done', 'failed')",
            name="chk_campaign_batches_status",
        ),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_campaign_batches_client_id"), "campaign_batches", ["client_id"], unique=False)
    op.create_index(op.f("ix_campaign_batches_status"), "campaign_batches", ["status"], unique=False)

    # Create generations table
    op.create_table(
        "generations",
        sa.Column("id", sa.Integer(), autoincrement=True),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("brand_kit_id", sa.Integer(), nullable=True),
        sa.Column("template_id", sa.Integer(), nullable=True),
        sa.Column("campaign_batch_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("prompt", sa.Text(), nullable=True),
        sa.Column("headline", sa.Text(), nullable=True),
        sa.Column("body_copy", sa.Text(), nullable=True),
        sa.Column("cta", sa.String(100), nullable=True),
        sa.Column("concept", sa.Text(), nullable=True),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column(
            "asset_ids",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "generated_images",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("selected_image_url", sa.Text(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'processing', 'done', 'failed')",
            name="chk_generations_status",
        ),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["brand_kit_id"], ["brand_kits.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["campaign_batch_id"], ["campaign_batches.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_generations_client_id"), "generations", ["client_id"], unique=False)
    op.create_index(op.f("ix_generations_brand_kit_id"), "generations", ["brand_kit_id"], unique=False)
    op.create_index(op.f("ix_generations_campaign_batch_id"), "generations", ["campaign_batch_id"], unique=False)
    op.create_index(op.f("ix_generations_status"), "generations", ["status"], unique=False)
    op.create_index(op.f("ix_generations_created_at"), "generations", ["created_at"], unique=False)


def downgrade() -> None:
    # Drop tables in reverse dependency order
    op.drop_index(op.f("ix_generations_created_at"), table_name="generations")
    op.drop_index(op.f("ix_generations_status"), table_name="generations")
    op.drop_index(op.f("ix_generations_campaign_batch_id"), table_name="generations")
    op.drop_index(op.f("ix_generations_brand_kit_id"), table_name="generations")
    op.drop_index(op.f("ix_generations_client_id"), table_name="generations")
    op.drop_table("generations")

    op.drop_index(op.f("ix_campaign_batches_status"), table_name="campaign_batches")
    op.drop_index(op.f("ix_campaign_batches_client_id"), table_name="campaign_batches")
    op.drop_table("campaign_batches")

    op.drop_index(op.f("ix_brand_kits_client_id"), table_name="brand_kits")
    op.drop_table("brand_kits")

    op.drop_table("clients")
