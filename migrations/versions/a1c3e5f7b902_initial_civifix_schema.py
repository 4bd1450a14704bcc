"""initial_civifix_schema

Creates the four CiviFix tables:
  - user_profiles  — one profile per identity (role, admin approval state)
  - technicians    — assignment targets, created from Technician profiles
  - issues         — citizen reports with location, status and priority
  - comments       — append-only discussion per issue

Tables created conditionally (IF NOT EXISTS semantics) so the revision can
run against a development database that already received them via
db.create_all().

Revision ID: a1c3e5f7b902
Revises:
Create Date: 2026-10-18 09:12:41.512094
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = 'a1c3e5f7b902'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── UserProfile ──────────────────────────────────────────────────────
    if "user_profiles" not in existing:
        op.create_table(
            "user_profiles",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("owner_user_id", sa.String(length=64), nullable=False),
            sa.Column("full_name", sa.String(length=200), nullable=False),
            sa.Column("phone", sa.String(length=50), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False),
            sa.Column(
                "admin_status", sa.String(length=20), nullable=True,
                comment="pending/approved/rejected, only meaningful when role=Admin",
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("owner_user_id"),
        )
        op.create_index("ix_user_profiles_role", "user_profiles", ["role"])
        op.create_index("ix_user_profiles_admin_status", "user_profiles", ["admin_status"])

    # ── Technician ───────────────────────────────────────────────────────
    if "technicians" not in existing:
        op.create_table(
            "technicians",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("owner_user_id", sa.String(length=64), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("phone", sa.String(length=50), nullable=False),
            sa.Column("specialty", sa.String(length=100), nullable=False),
            sa.Column("available", sa.Boolean(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("owner_user_id"),
        )
        op.create_index("ix_technicians_available", "technicians", ["available"])
        op.create_index("ix_technicians_specialty", "technicians", ["specialty"])

    # ── Issue ────────────────────────────────────────────────────────────
    if "issues" not in existing:
        op.create_table(
            "issues",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("title", sa.String(length=300), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("category", sa.String(length=20), nullable=False),
            sa.Column("photo", sa.Text(), nullable=True, comment="Base64 image or URL"),
            sa.Column("latitude", sa.Float(), nullable=False),
            sa.Column("longitude", sa.Float(), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("priority", sa.String(length=20), nullable=False),
            sa.Column("reported_by", sa.String(length=64), nullable=False),
            sa.Column("assigned_to", sa.String(length=36), nullable=True, comment="Technician.id"),
            sa.Column(
                "proof_photo", sa.Text(), nullable=True,
                comment="Completion proof from the technician",
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_issues_status", "issues", ["status"])
        op.create_index("ix_issues_reported_by", "issues", ["reported_by"])
        op.create_index("ix_issues_assigned_to", "issues", ["assigned_to"])
        op.create_index("ix_issues_category", "issues", ["category"])
        op.create_index("ix_issues_priority", "issues", ["priority"])
        op.create_index("ix_issues_lat_lng", "issues", ["latitude", "longitude"])

    # ── Comment ──────────────────────────────────────────────────────────
    if "comments" not in existing:
        op.create_table(
            "comments",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("issue_id", sa.String(length=36), nullable=False),
            sa.Column("author_user_id", sa.String(length=64), nullable=False),
            sa.Column("message", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(["issue_id"], ["issues.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_comments_issue_id", "comments", ["issue_id"])
        op.create_index("ix_comments_author_user_id", "comments", ["author_user_id"])


def downgrade():
    op.drop_table("comments")
    op.drop_table("issues")
    op.drop_table("technicians")
    op.drop_table("user_profiles")
