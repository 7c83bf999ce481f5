"""init
Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

RESPONSIBLE_DEFAULT = "System administrator"


def _base_columns():
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responsible", sa.String(length=200), nullable=False, server_default=RESPONSIBLE_DEFAULT),
    ]


def upgrade():
    op.create_table(
        "projects",
        *_base_columns(),
        sa.Column("name", sa.String(length=200), nullable=False, unique=True),
        sa.Column("contributors", sa.JSON(), nullable=False, server_default=sa.text("'[]'::json")),
        sa.Column("administrators", sa.JSON(), nullable=False, server_default=sa.text("'[]'::json")),
    )
    op.create_index("ix_projects_name", "projects", ["name"])

    op.create_table(
        "tabs",
        *_base_columns(),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tab_name", sa.String(length=200), nullable=False),
        sa.Column("generate_unique_identifier", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("identifier_max_letter", sa.String(length=1), nullable=True),
        sa.Column("identifier_max_number", sa.Integer(), nullable=True),
        sa.Column("unwanted_codes", sa.JSON(), nullable=False, server_default=sa.text("'[]'::json")),
        sa.Column("utilize_unwanted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("schema_version", sa.Integer(), nullable=False, server_default="1"),
        sa.UniqueConstraint("project_id", "tab_name", name="uq_tabs_project_tab_name"),
    )
    op.create_index("ix_tabs_project_id", "tabs", ["project_id"])

    op.create_table(
        "tab_columns",
        *_base_columns(),
        sa.Column("tab_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("data_type", sa.String(length=30), nullable=False, server_default="text"),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("required_field", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("identifier_domain", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("entry_options", sa.JSON(), nullable=False, server_default=sa.text("'[]'::json")),
        sa.UniqueConstraint("tab_id", "key", name="uq_tab_columns_tab_key"),
    )
    op.create_index("ix_tab_columns_tab_id", "tab_columns", ["tab_id"])
    op.create_index("ix_tab_columns_key", "tab_columns", ["key"])

    op.create_table(
        "entries",
        *_base_columns(),
        sa.Column("tab_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("entry_data", sa.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.Column("entry_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_entries_tab_id", "entries", ["tab_id"])
    op.create_index("ix_entries_entry_date", "entries", ["entry_date"])
    op.create_index("ix_entries_deleted", "entries", ["deleted"])


def downgrade():
    op.drop_index("ix_entries_deleted", table_name="entries")
    op.drop_index("ix_entries_entry_date", table_name="entries")
    op.drop_index("ix_entries_tab_id", table_name="entries")
    op.drop_table("entries")
    op.drop_index("ix_tab_columns_key", table_name="tab_columns")
    op.drop_index("ix_tab_columns_tab_id", table_name="tab_columns")
    op.drop_table("tab_columns")
    op.drop_index("ix_tabs_project_id", table_name="tabs")
    op.drop_table("tabs")
    op.drop_index("ix_projects_name", table_name="projects")
    op.drop_table("projects")
