"""create signal_types, point_groups and catalog_points tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

from db.models.signal_type import KNOWN_SIGNAL_TYPES

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    signal_types = op.create_table(
        "signal_types",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("acronym", sa.String(length=4), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("suffix", sa.String(length=2), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_signal_types"),
        sa.UniqueConstraint("acronym", name="uq_signal_types_acronym"),
    )
    op.bulk_insert(
        signal_types,
        [
            {"id": info.id, "acronym": info.acronym, "name": info.name, "suffix": info.suffix}
            for info in KNOWN_SIGNAL_TYPES.values()
        ],
    )

    op.create_table(
        "point_groups",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("acronym", sa.String(length=200), nullable=False),
        sa.Column("reference_name", sa.String(length=200), nullable=False),
        sa.Column("protocol", sa.String(length=50), nullable=False),
        sa.Column("connection_note", sa.Text(), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_point_groups"),
        sa.UniqueConstraint("reference_name", name="uq_point_groups_reference_name"),
    )
    op.create_index("ix_point_groups_acronym", "point_groups", ["acronym"], unique=False)

    op.create_table(
        "catalog_points",
        sa.Column("point_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("signal_id", sa.Uuid(), nullable=False),
        sa.Column("point_tag", sa.String(length=200), nullable=False),
        sa.Column("alternate_tag", sa.String(length=200), nullable=True),
        sa.Column("signal_reference", sa.String(length=200), nullable=False),
        sa.Column("sequence_index", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("signal_type_id", sa.Integer(), nullable=False),
        sa.Column("adder", sa.Float(), nullable=False),
        sa.Column("multiplier", sa.Float(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(
            ["group_id"],
            ["point_groups.id"],
            name="fk_catalog_points_group_id_point_groups",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("point_id", name="pk_catalog_points"),
        sa.UniqueConstraint("point_tag", name="uq_catalog_points_point_tag"),
        sa.UniqueConstraint("signal_id", name="uq_catalog_points_signal_id"),
    )
    op.create_index("ix_catalog_points_group_id", "catalog_points", ["group_id"], unique=False)
    op.create_index(
        "ix_catalog_points_signal_reference",
        "catalog_points",
        ["signal_reference"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_catalog_points_signal_reference", table_name="catalog_points")
    op.drop_index("ix_catalog_points_group_id", table_name="catalog_points")
    op.drop_table("catalog_points")
    op.drop_index("ix_point_groups_acronym", table_name="point_groups")
    op.drop_table("point_groups")
    op.drop_table("signal_types")
