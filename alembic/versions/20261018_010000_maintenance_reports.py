"""Maintenance reports: documents, document photos and corrective reports.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create maintenance report tables."""
    op.create_table(
        "maintenance_documents",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("document_type", sa.String(length=10), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("maintenance_name", sa.String(length=255), nullable=False),
        sa.Column("maintenance_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("specific_detail", sa.String(length=255), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("total_photos", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("photos_with_image", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.UUID(), nullable=False),
        sa.Column("created_by_email", sa.String(length=320), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_maintenance_documents_created_at", "maintenance_documents", ["created_at"])
    op.create_index(
        "ix_maintenance_documents_created_by",
        "maintenance_documents",
        ["created_by", "created_at"],
    )

    op.create_table(
        "document_photos",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("document_id", sa.UUID(), nullable=False),
        sa.Column("index", sa.Integer(), nullable=False),
        sa.Column("photo_data", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.ForeignKeyConstraint(
            ["document_id"], ["maintenance_documents.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("document_id", "index", name="uq_document_photos_position"),
    )

    op.create_table(
        "corrective_reports",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("issue", sa.Text(), nullable=False),
        sa.Column("action_taken", sa.Text(), nullable=False),
        sa.Column("spare_parts", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="Open"),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("photo_data", sa.Text(), nullable=False),
        sa.Column("photo_description", sa.Text(), nullable=False, server_default=""),
        sa.Column("reported_by", sa.UUID(), nullable=False),
        sa.Column("reported_by_email", sa.String(length=320), nullable=False),
        sa.Column(
            "reported_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_corrective_reports_reported_at", "corrective_reports", ["reported_at"])


def downgrade() -> None:
    """Drop maintenance report tables."""
    op.drop_index("ix_corrective_reports_reported_at", table_name="corrective_reports")
    op.drop_table("corrective_reports")
    op.drop_table("document_photos")
    op.drop_index("ix_maintenance_documents_created_by", table_name="maintenance_documents")
    op.drop_index("ix_maintenance_documents_created_at", table_name="maintenance_documents")
    op.drop_table("maintenance_documents")
