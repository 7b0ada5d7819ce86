"""Initial schema - users, content store, upload stash, moderation queue, audit log.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # --- ENUM types ---
    user_role = sa.Enum("admin", "moderator", "automoderated", "user", name="user_role")
    change_type = sa.Enum("edit", "new", "log", name="change_type")
    change_kind = sa.Enum("edit", "move", name="moderation_change_kind")
    audit_action = sa.Enum("approve", "approveall", "reject", "rejectall", "block", "unblock", name="audit_action")

    # --- 1. users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean, server_default=sa.text("true")),
        *_timestamps(),
    )

    # --- 2. pages ---
    op.create_table(
        "pages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("namespace", sa.Integer, nullable=False, server_default="0"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("latest_revision_id", sa.Integer, nullable=True),
        sa.UniqueConstraint("namespace", "title", name="uq_pages_namespace_title"),
    )

    # --- 3. revisions ---
    op.create_table(
        "revisions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("page_id", sa.Integer, sa.ForeignKey("pages.id"), nullable=False),
        sa.Column("parent_id", sa.Integer, nullable=True),
        sa.Column("text", sa.Text, nullable=False, server_default=""),
        sa.Column("comment", sa.String(767), nullable=False, server_default=""),
        sa.Column("user_id", sa.Integer, nullable=False, server_default="0"),
        sa.Column("user_text", sa.String(255), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("minor", sa.Boolean, server_default=sa.text("false")),
        sa.Column("size", sa.Integer, server_default="0"),
    )
    op.create_index("ix_revisions_page_id", "revisions", ["page_id"])

    # --- 4. recent_changes ---
    op.create_table(
        "recent_changes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("revision_id", sa.Integer, nullable=True),
        sa.Column("namespace", sa.Integer, nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("type", change_type, nullable=False),
        sa.Column("user_id", sa.Integer, nullable=False, server_default="0"),
        sa.Column("user_text", sa.String(255), nullable=False),
        sa.Column("comment", sa.String(767), nullable=False, server_default=""),
        sa.Column("bot", sa.Boolean, server_default=sa.text("false")),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("ip", sa.String(45), nullable=True),
        sa.Column("xff", sa.String(255), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
    )
    op.create_index("ix_recent_changes_revision_id", "recent_changes", ["revision_id"])

    # --- 5. upload_stash ---
    op.create_table(
        "upload_stash",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("key", sa.String(255), unique=True, nullable=False),
        sa.Column("user_id", sa.Integer, nullable=False, server_default="0"),
        sa.Column("user_text", sa.String(255), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("mime", sa.String(100), nullable=False, server_default="application/octet-stream"),
        sa.Column("sha1", sa.String(40), nullable=False),
        sa.Column("data", sa.LargeBinary, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # --- 6. files ---
    op.create_table(
        "files",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), unique=True, nullable=False),
        sa.Column("mime", sa.String(100), nullable=False),
        sa.Column("sha1", sa.String(40), nullable=False),
        sa.Column("size", sa.Integer, nullable=False, server_default="0"),
        sa.Column("data", sa.LargeBinary, nullable=False),
        sa.Column("user_id", sa.Integer, nullable=False, server_default="0"),
        sa.Column("user_text", sa.String(255), nullable=False),
        *_timestamps(),
    )

    # --- 7. moderation ---
    op.create_table(
        "moderation",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("user_id", sa.Integer, nullable=False, server_default="0"),
        sa.Column("user_text", sa.String(255), nullable=False),
        sa.Column("namespace", sa.Integer, nullable=False, server_default="0"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("page2_namespace", sa.Integer, nullable=True),
        sa.Column("page2_title", sa.String(255), nullable=True),
        sa.Column("type", change_kind, nullable=False, server_default="edit"),
        sa.Column("comment", sa.String(767), nullable=False, server_default=""),
        sa.Column("minor", sa.Boolean, server_default=sa.text("false")),
        sa.Column("bot", sa.Boolean, server_default=sa.text("false")),
        sa.Column("last_oldid", sa.Integer, nullable=True),
        sa.Column("text", sa.Text, nullable=False, server_default=""),
        sa.Column("stash_key", sa.String(255), nullable=True),
        sa.Column("ip", sa.String(45), nullable=True),
        sa.Column("header_xff", sa.String(255), nullable=True),
        sa.Column("header_ua", sa.String(500), nullable=True),
        sa.Column("preload_id", sa.String(256), nullable=False),
        sa.Column("preloadable", sa.Boolean, server_default=sa.text("true")),
        sa.Column("rejected", sa.Boolean, server_default=sa.text("false")),
        sa.Column("rejected_by_user", sa.Integer, nullable=False, server_default="0"),
        sa.Column("rejected_by_user_text", sa.String(255), nullable=True),
        sa.Column("rejected_batch", sa.Boolean, server_default=sa.text("false")),
        sa.Column("rejected_auto", sa.Boolean, server_default=sa.text("false")),
        sa.Column("merged_revid", sa.Integer, nullable=True),
        sa.Column("conflict", sa.Boolean, server_default=sa.text("false")),
        sa.Column("tags", JSONB, nullable=True),
    )
    op.create_index("moderation_approveall", "moderation", ["user_text", "rejected", "conflict"])
    op.create_index("moderation_rejectall", "moderation", ["user_text", "rejected", "merged_revid"])
    op.create_index("moderation_preload", "moderation", ["preload_id", "namespace", "title", "preloadable"])

    # --- 8. moderation_block ---
    op.create_table(
        "moderation_block",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("address", sa.String(255), unique=True, nullable=False),
        sa.Column("user_id", sa.Integer, nullable=False, server_default="0"),
        sa.Column("blocked_by_user", sa.Integer, nullable=False),
        sa.Column("blocked_by_user_text", sa.String(255), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- 9. audit_logs ---
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("user_text", sa.String(255), nullable=False),
        sa.Column("action", audit_action, nullable=False),
        sa.Column("target_namespace", sa.Integer, nullable=False, server_default="0"),
        sa.Column("target_title", sa.String(255), nullable=False),
        sa.Column("params", JSONB, nullable=True),
        *_timestamps(),
    )

    # updated_at auto-update trigger
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    for table in ["users", "upload_stash", "files", "audit_logs"]:
        op.execute(f"""
            CREATE TRIGGER trigger_update_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade() -> None:
    for table in ["users", "upload_stash", "files", "audit_logs"]:
        op.execute(f"DROP TRIGGER IF EXISTS trigger_update_{table}_updated_at ON {table}")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    for table in [
        "audit_logs", "moderation_block", "moderation", "files", "upload_stash",
        "recent_changes", "revisions", "pages", "users",
    ]:
        op.drop_table(table)

    for enum in ["user_role", "change_type", "moderation_change_kind", "audit_action"]:
        op.execute(f"DROP TYPE IF EXISTS {enum}")
