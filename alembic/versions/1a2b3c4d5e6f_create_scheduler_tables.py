"""Create scheduler bundle, content and media tables

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "1a2b3c4d5e6f"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Bundles and their scheduler overrides
    op.create_table(
        "scheduler_bundles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("bundle", sa.String(length=64), nullable=False),
        sa.Column("label", sa.String(), nullable=False),
        sa.Column("scheduler_settings", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("entity_type", "bundle", name="uq_scheduler_bundle"),
    )
    op.create_index("ix_scheduler_bundles_id", "scheduler_bundles", ["id"], unique=False)
    op.create_index("ix_scheduler_bundles_entity_type", "scheduler_bundles", ["entity_type"], unique=False)

    # Content: base, revisions, per-revision translated fields
    op.create_table(
        "content",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("bundle", sa.String(length=64), nullable=False),
        sa.Column("default_langcode", sa.String(length=12), nullable=False),
        sa.Column("revision_id", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_content_id", "content", ["id"], unique=False)
    op.create_index("ix_content_bundle", "content", ["bundle"], unique=False)

    op.create_table(
        "content_revisions",
        sa.Column("revision_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("content_id", sa.Integer(), nullable=False),
        sa.Column("revision_log", sa.Text(), nullable=True),
        sa.Column("revision_created", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["content_id"], ["content.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("revision_id"),
    )
    op.create_index("ix_content_revisions_content_id", "content_revisions", ["content_id"], unique=False)

    op.create_table(
        "content_field_revisions",
        sa.Column("revision_id", sa.Integer(), nullable=False),
        sa.Column("langcode", sa.String(length=12), nullable=False),
        sa.Column("content_id", sa.Integer(), nullable=False),
        sa.Column("default_langcode", sa.Boolean(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("status", sa.Boolean(), nullable=False),
        sa.Column("publish_on", sa.Integer(), nullable=True),
        sa.Column("unpublish_on", sa.Integer(), nullable=True),
        sa.Column("created", sa.Integer(), nullable=False),
        sa.Column("changed", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["revision_id"], ["content_revisions.revision_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["content_id"], ["content.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("revision_id", "langcode"),
    )
    op.create_index("idx_cfr_content_revision", "content_field_revisions", ["content_id", "revision_id"], unique=False)
    op.create_index("idx_cfr_publish_on", "content_field_revisions", ["publish_on"], unique=False)
    op.create_index("idx_cfr_unpublish_on", "content_field_revisions", ["unpublish_on"], unique=False)

    # Media: base and translated fields
    op.create_table(
        "media",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("bundle", sa.String(length=64), nullable=False),
        sa.Column("default_langcode", sa.String(length=12), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_media_id", "media", ["id"], unique=False)
    op.create_index("ix_media_bundle", "media", ["bundle"], unique=False)

    op.create_table(
        "media_field_data",
        sa.Column("media_id", sa.Integer(), nullable=False),
        sa.Column("langcode", sa.String(length=12), nullable=False),
        sa.Column("default_langcode", sa.Boolean(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("status", sa.Boolean(), nullable=False),
        sa.Column("publish_on", sa.Integer(), nullable=True),
        sa.Column("unpublish_on", sa.Integer(), nullable=True),
        sa.Column("created", sa.Integer(), nullable=False),
        sa.Column("changed", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["media_id"], ["media.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("media_id", "langcode"),
    )
    op.create_index("idx_mfd_publish_on", "media_field_data", ["publish_on"], unique=False)
    op.create_index("idx_mfd_unpublish_on", "media_field_data", ["unpublish_on"], unique=False)


def downgrade() -> None:
    op.drop_index("idx_mfd_unpublish_on", table_name="media_field_data")
    op.drop_index("idx_mfd_publish_on", table_name="media_field_data")
    op.drop_table("media_field_data")
    op.drop_index("ix_media_bundle", table_name="media")
    op.drop_index("ix_media_id", table_name="media")
    op.drop_table("media")

    op.drop_index("idx_cfr_unpublish_on", table_name="content_field_revisions")
    op.drop_index("idx_cfr_publish_on", table_name="content_field_revisions")
    op.drop_index("idx_cfr_content_revision", table_name="content_field_revisions")
    op.drop_table("content_field_revisions")
    op.drop_index("ix_content_revisions_content_id", table_name="content_revisions")
    op.drop_table("content_revisions")
    op.drop_index("ix_content_bundle", table_name="content")
    op.drop_index("ix_content_id", table_name="content")
    op.drop_table("content")

    op.drop_index("ix_scheduler_bundles_entity_type", table_name="scheduler_bundles")
    op.drop_index("ix_scheduler_bundles_id", table_name="scheduler_bundles")
    op.drop_table("scheduler_bundles")
