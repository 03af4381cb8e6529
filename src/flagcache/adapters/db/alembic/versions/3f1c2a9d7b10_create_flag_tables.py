"""Create flag tables

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-12

"""

# pylint: disable=invalid-name

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from flagcache.adapters.db.sa_types import BIGINT_PK, PORTABLE_JSON, UTCDateTime

# deal with alembic stuff
# pylint: disable=no-member

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            UTCDateTime(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            UTCDateTime(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "deleted_at",
            UTCDateTime(),
            nullable=True,
            comment="Soft-delete marker; NULL for live rows.",
        ),
    ]


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "flags",
        sa.Column("id", BIGINT_PK, sa.Identity(always=False, start=1), nullable=False),
        sa.Column("key", sa.String(length=64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("enabled", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "data_records_enabled",
            sa.Boolean(),
            server_default=sa.false(),
            nullable=False,
        ),
        sa.Column(
            "entity_type", sa.String(length=255), server_default="", nullable=False
        ),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_flags")),
        sa.UniqueConstraint("key", name=op.f("uq_flags_key")),
        comment="Feature flags.",
    )

    op.create_table(
        "tags",
        sa.Column("id", BIGINT_PK, sa.Identity(always=False, start=1), nullable=False),
        sa.Column("value", sa.String(length=64), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_tags")),
        sa.UniqueConstraint("value", name=op.f("uq_tags_value")),
        comment="Labels attached to flags.",
    )

    op.create_table(
        "segments",
        sa.Column("id", BIGINT_PK, sa.Identity(always=False, start=1), nullable=False),
        sa.Column("flag_id", BIGINT_PK, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("rank", sa.Integer(), server_default="0", nullable=False),
        sa.Column("rollout_percent", sa.Integer(), server_default="0", nullable=False),
        *_audit_columns(),
        sa.CheckConstraint(
            "rollout_percent >= 0 AND rollout_percent <= 100",
            name=op.f("ck_segments_rollout_percent_range"),
        ),
        sa.ForeignKeyConstraint(
            ["flag_id"],
            ["flags.id"],
            name=op.f("fk_segments_flag_id_flags"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_segments")),
        comment="Audience segments of a flag.",
    )
    op.create_index(
        op.f("ix_segments_flag_id_rank"), "segments", ["flag_id", "rank"], unique=False
    )

    op.create_table(
        "variants",
        sa.Column("id", BIGINT_PK, sa.Identity(always=False, start=1), nullable=False),
        sa.Column("flag_id", BIGINT_PK, nullable=False),
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column("attachment", PORTABLE_JSON, nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(
            ["flag_id"],
            ["flags.id"],
            name=op.f("fk_variants_flag_id_flags"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_variants")),
        comment="Possible evaluation results of a flag.",
    )
    op.create_index(op.f("ix_variants_flag_id"), "variants", ["flag_id"], unique=False)

    op.create_table(
        "constraints",
        sa.Column("id", BIGINT_PK, sa.Identity(always=False, start=1), nullable=False),
        sa.Column("segment_id", BIGINT_PK, nullable=False),
        sa.Column("property", sa.String(length=255), nullable=False),
        sa.Column("operator", sa.String(length=32), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(
            ["segment_id"],
            ["segments.id"],
            name=op.f("fk_constraints_segment_id_segments"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_constraints")),
        comment="Matching rules of a segment.",
    )
    op.create_index(
        op.f("ix_constraints_segment_id"), "constraints", ["segment_id"], unique=False
    )

    op.create_table(
        "distributions",
        sa.Column("id", BIGINT_PK, sa.Identity(always=False, start=1), nullable=False),
        sa.Column("segment_id", BIGINT_PK, nullable=False),
        sa.Column("variant_id", BIGINT_PK, nullable=False),
        sa.Column(
            "variant_key", sa.String(length=255), server_default="", nullable=False
        ),
        sa.Column("percent", sa.Integer(), server_default="0", nullable=False),
        *_audit_columns(),
        sa.CheckConstraint(
            "percent >= 0 AND percent <= 100",
            name=op.f("ck_distributions_percent_range"),
        ),
        sa.ForeignKeyConstraint(
            ["segment_id"],
            ["segments.id"],
            name=op.f("fk_distributions_segment_id_segments"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_distributions")),
        comment="Variant split of a segment.",
    )
    op.create_index(
        op.f("ix_distributions_segment_id"),
        "distributions",
        ["segment_id"],
        unique=False,
    )

    op.create_table(
        "flags_tags",
        sa.Column("flag_id", BIGINT_PK, nullable=False),
        sa.Column("tag_id", BIGINT_PK, nullable=False),
        sa.ForeignKeyConstraint(
            ["flag_id"],
            ["flags.id"],
            name=op.f("fk_flags_tags_flag_id_flags"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["tag_id"],
            ["tags.id"],
            name=op.f("fk_flags_tags_tag_id_tags"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("flag_id", "tag_id", name=op.f("pk_flags_tags")),
        comment="Flag/tag association.",
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_table("flags_tags")
    op.drop_index(op.f("ix_distributions_segment_id"), table_name="distributions")
    op.drop_table("distributions")
    op.drop_index(op.f("ix_constraints_segment_id"), table_name="constraints")
    op.drop_table("constraints")
    op.drop_index(op.f("ix_variants_flag_id"), table_name="variants")
    op.drop_table("variants")
    op.drop_index(op.f("ix_segments_flag_id_rank"), table_name="segments")
    op.drop_table("segments")
    op.drop_table("tags")
    op.drop_table("flags")
