"""Initial schema: organizations, users, sites, templates, inspections, approval logs

Revision ID: 0001
Revises: None
Create Date: 2026-09-14

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    # --- organizations (no FK deps) ---
    op.create_table(
        "organizations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("approval_levels", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id", name="pk_organizations"),
        sa.CheckConstraint(
            "approval_levels >= 0 AND approval_levels <= 3",
            name="ck_organizations_approval_levels",
        ),
    )

    # --- users (FK -> organizations) ---
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255)),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="inspector"),
        sa.Column("approval_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), server_default="true"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.ForeignKeyConstraint(
            ["organization_id"],
            ["organizations.id"],
            name="fk_users_organization_id_organizations",
        ),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_organization_id", "users", ["organization_id"])

    # --- organization_settings (FK -> organizations, users) ---
    op.create_table(
        "organization_settings",
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("default_approver_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("organization_id", name="pk_organization_settings"),
        sa.ForeignKeyConstraint(
            ["organization_id"],
            ["organizations.id"],
            name="fk_organization_settings_organization_id_organizations",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["default_approver_id"],
            ["users.id"],
            name="fk_organization_settings_default_approver_id_users",
            ondelete="SET NULL",
        ),
    )

    # --- sites (FK -> organizations) ---
    op.create_table(
        "sites",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("facility_type", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id", name="pk_sites"),
        sa.ForeignKeyConstraint(
            ["organization_id"],
            ["organizations.id"],
            name="fk_sites_organization_id_organizations",
        ),
    )
    op.create_index("ix_sites_organization_id", "sites", ["organization_id"])

    # --- templates / template_items ---
    op.create_table(
        "templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id", name="pk_templates"),
        sa.ForeignKeyConstraint(
            ["organization_id"],
            ["organizations.id"],
            name="fk_templates_organization_id_organizations",
        ),
    )
    op.create_index("ix_templates_organization_id", "templates", ["organization_id"])

    op.create_table(
        "template_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("item_type", sa.String(30), nullable=False),
        sa.Column("label", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("display_facility_types", sa.JSON(), nullable=False, server_default="[]"),
        sa.PrimaryKeyConstraint("id", name="pk_template_items"),
        sa.ForeignKeyConstraint(
            ["template_id"],
            ["templates.id"],
            name="fk_template_items_template_id_templates",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_template_items_template_id", "template_items", ["template_id"])

    # --- inspections ---
    op.create_table(
        "inspections",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("site_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("inspector_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="draft"),
        sa.Column("approver_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("inspection_date", sa.Date(), nullable=False),
        sa.Column("overview_metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id", name="pk_inspections"),
        sa.ForeignKeyConstraint(
            ["organization_id"], ["organizations.id"],
            name="fk_inspections_organization_id_organizations",
        ),
        sa.ForeignKeyConstraint(["site_id"], ["sites.id"], name="fk_inspections_site_id_sites"),
        sa.ForeignKeyConstraint(["template_id"], ["templates.id"], name="fk_inspections_template_id_templates"),
        sa.ForeignKeyConstraint(["inspector_id"], ["users.id"], name="fk_inspections_inspector_id_users"),
        sa.ForeignKeyConstraint(
            ["approver_id"], ["users.id"],
            name="fk_inspections_approver_id_users",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_inspections_organization_id", "inspections", ["organization_id"])
    op.create_index("ix_inspections_site_id", "inspections", ["site_id"])
    op.create_index("ix_inspections_inspector_id", "inspections", ["inspector_id"])
    op.create_index("ix_inspections_status", "inspections", ["status"])
    op.create_index("ix_inspections_created_at", "inspections", ["created_at"])

    # --- inspection_items (one answer per template item) ---
    op.create_table(
        "inspection_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("inspection_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("template_item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id", name="pk_inspection_items"),
        sa.UniqueConstraint(
            "inspection_id", "template_item_id",
            name="uq_inspection_items_inspection_template_item",
        ),
        sa.ForeignKeyConstraint(
            ["inspection_id"], ["inspections.id"],
            name="fk_inspection_items_inspection_id_inspections",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["template_item_id"], ["template_items.id"],
            name="fk_inspection_items_template_item_id_template_items",
        ),
    )
    op.create_index("ix_inspection_items_inspection_id", "inspection_items", ["inspection_id"])

    # --- photos (metadata; binaries in blob storage) ---
    op.create_table(
        "photos",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("inspection_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("inspection_item_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("file_path", sa.String(512), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(), server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id", name="pk_photos"),
        sa.ForeignKeyConstraint(
            ["inspection_id"], ["inspections.id"],
            name="fk_photos_inspection_id_inspections",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["inspection_item_id"], ["inspection_items.id"],
            name="fk_photos_inspection_item_id_inspection_items",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_photos_inspection_id", "photos", ["inspection_id"])

    # --- approval_logs (append-only) ---
    op.create_table(
        "approval_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("inspection_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id", name="pk_approval_logs"),
        sa.ForeignKeyConstraint(
            ["inspection_id"], ["inspections.id"],
            name="fk_approval_logs_inspection_id_inspections",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"], name="fk_approval_logs_actor_id_users"),
    )
    op.create_index("ix_approval_logs_inspection_id", "approval_logs", ["inspection_id"])
    op.create_index("ix_approval_logs_created_at", "approval_logs", ["created_at"])

    # --- inspection_edit_logs ---
    op.create_table(
        "inspection_edit_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("inspection_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("editor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("changed_fields", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("changes", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id", name="pk_inspection_edit_logs"),
        sa.ForeignKeyConstraint(
            ["inspection_id"], ["inspections.id"],
            name="fk_inspection_edit_logs_inspection_id_inspections",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(["editor_id"], ["users.id"], name="fk_inspection_edit_logs_editor_id_users"),
    )
    op.create_index("ix_inspection_edit_logs_inspection_id", "inspection_edit_logs", ["inspection_id"])
    op.create_index("ix_inspection_edit_logs_created_at", "inspection_edit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("inspection_edit_logs")
    op.drop_table("approval_logs")
    op.drop_table("photos")
    op.drop_table("inspection_items")
    op.drop_table("inspections")
    op.drop_table("template_items")
    op.drop_table("templates")
    op.drop_table("sites")
    op.drop_table("organization_settings")
    op.drop_table("users")
    op.drop_table("organizations")
