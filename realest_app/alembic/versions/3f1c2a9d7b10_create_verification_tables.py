"""create verification tables

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 09:12:41.508113
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import geoalchemy2
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


PROPERTY_STATUSES = (
    "draft",
    "pending_ml_validation",
    "pending_vetting",
    "pending_duplicate_review",
    "live",
    "rejected",
    "expired",
    "sold",
)


def _str_enum(*values, name, length):
    return sa.Enum(*values, name=name, native_enum=False, length=length)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column(
            "role",
            _str_enum("user", "owner", "agent", "admin", name="userrole", length=16),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "properties",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "owner_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("state", sa.String(length=100), nullable=False),
        sa.Column("lga", sa.String(length=100), nullable=True),
        sa.Column(
            "location",
            geoalchemy2.types.Geography(
                geometry_type="POINT",
                srid=4326,
                spatial_index=False,
                from_text="ST_GeogFromText",
                name="geography",
            ),
            nullable=True,
        ),
        sa.Column("price", sa.Numeric(14, 2), nullable=True),
        sa.Column(
            "status",
            _str_enum(*PROPERTY_STATUSES, name="propertystatus", length=32),
            nullable=False,
        ),
        sa.Column(
            "ml_validation_status",
            _str_enum(
                "passed", "failed", "review_required",
                name="mlvalidationstatus", length=32,
            ),
            nullable=True,
        ),
        sa.Column("ml_confidence_score", sa.Float(), nullable=True),
        sa.Column("ml_validation_notes", sa.Text(), nullable=True),
        sa.Column("ml_validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "vetted_by",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("vetted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column(
            "flagged_as_duplicate",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("duplicate_review_notes", sa.Text(), nullable=True),
        sa.Column(
            "duplicate_resolution",
            _str_enum(
                "keep_both", "keep_master", "reject_duplicate",
                name="duplicateresolution", length=32,
            ),
            nullable=True,
        ),
        sa.Column("duplicate_resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "duplicate_of_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("properties.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status <> 'live' OR verified_at IS NOT NULL",
            name="ck_properties_live_requires_verified_at",
        ),
        sa.CheckConstraint(
            "status <> 'rejected' OR (rejection_reason IS NOT NULL AND length(trim(rejection_reason)) > 0)",
            name="ck_properties_rejected_requires_reason",
        ),
        sa.CheckConstraint(
            "ml_confidence_score IS NULL OR (ml_confidence_score >= 0 AND ml_confidence_score <= 1)",
            name="ck_properties_ml_confidence_range",
        ),
    )
    op.create_index("ix_properties_owner_id", "properties", ["owner_id"])
    op.create_index("ix_properties_state", "properties", ["state"])
    op.create_index("ix_properties_status", "properties", ["status"])
    op.create_index("ix_properties_address_state", "properties", ["address", "state"])
    op.create_index(
        "ix_properties_status_created_at", "properties", ["status", "created_at"]
    )
    op.create_geospatial_index(
        "idx_properties_location",
        "properties",
        ["location"],
        unique=False,
        postgresql_using="gist",
        postgresql_ops={},
    )

    op.create_table(
        "admin_actions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "admin_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "action_type",
            _str_enum(
                "ml_validation_update", "property_vetting", "duplicate_resolution",
                name="adminactiontype", length=48,
            ),
            nullable=False,
        ),
        sa.Column("target_type", sa.String(length=50), nullable=False),
        sa.Column("target_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_admin_actions_admin_id", "admin_actions", ["admin_id"])
    op.create_index("ix_admin_actions_target_id", "admin_actions", ["target_id"])

    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "type",
            _str_enum(
                "ml_validation", "property_status", "duplicate_resolution",
                name="notificationtype", length=48,
            ),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index(
        "ix_notifications_user_unread", "notifications", ["user_id", "is_read"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_notifications_user_unread", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_admin_actions_target_id", table_name="admin_actions")
    op.drop_index("ix_admin_actions_admin_id", table_name="admin_actions")
    op.drop_table("admin_actions")

    op.drop_geospatial_index(
        "idx_properties_location",
        table_name="properties",
        postgresql_using="gist",
        column_name="location",
    )
    op.drop_index("ix_properties_status_created_at", table_name="properties")
    op.drop_index("ix_properties_address_state", table_name="properties")
    op.drop_index("ix_properties_status", table_name="properties")
    op.drop_index("ix_properties_state", table_name="properties")
    op.drop_index("ix_properties_owner_id", table_name="properties")
    op.drop_table("properties")

    op.drop_table("users")
