"""create tutor tables

Revision ID: 3c1e8a0f5d21
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1e8a0f5d21"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.String(length=64), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("page_count", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_documents_course_id", "documents", ["course_id"], unique=False)

    op.create_table(
        "fragments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.String(length=64), nullable=False),
        sa.Column("document_id", sa.Integer(), nullable=False),
        sa.Column("chunk_index", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("page", sa.Integer(), nullable=False),
        sa.Column("start_char", sa.Integer(), nullable=False),
        sa.Column("page_is_estimate", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("page >= 1", name="ck_fragments_page_positive"),
    )
    op.create_index("ix_fragments_course_id", "fragments", ["course_id"], unique=False)
    op.create_index("ix_fragments_document_id", "fragments", ["document_id"], unique=False)

    op.create_table(
        "analytics_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("student_id", sa.String(length=64), nullable=False),
        sa.Column("course_id", sa.String(length=64), nullable=False),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("topic", sa.String(length=100), nullable=True),
        sa.Column("message_content", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_analytics_events_student_id", "analytics_events", ["student_id"], unique=False)
    op.create_index("ix_analytics_events_course_id", "analytics_events", ["course_id"], unique=False)
    op.create_index("ix_analytics_events_topic", "analytics_events", ["topic"], unique=False)
    op.create_index("ix_analytics_events_created_at", "analytics_events", ["created_at"], unique=False)

    op.create_table(
        "student_mastery",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("student_id", sa.String(length=64), nullable=False),
        sa.Column("course_id", sa.String(length=64), nullable=False),
        sa.Column("concept", sa.String(length=100), nullable=False),
        sa.Column("mastery_level", sa.Integer(), server_default="0", nullable=False),
        sa.Column("questions_asked", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_practiced", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("student_id", "course_id", "concept", name="uq_student_mastery"),
        sa.CheckConstraint(
            "mastery_level >= 0 AND mastery_level <= 100",
            name="ck_student_mastery_level_range",
        ),
    )
    op.create_index("ix_student_mastery_student_id", "student_mastery", ["student_id"], unique=False)
    op.create_index("ix_student_mastery_course_id", "student_mastery", ["course_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_student_mastery_course_id", table_name="student_mastery")
    op.drop_index("ix_student_mastery_student_id", table_name="student_mastery")
    op.drop_table("student_mastery")
    op.drop_index("ix_analytics_events_created_at", table_name="analytics_events")
    op.drop_index("ix_analytics_events_topic", table_name="analytics_events")
    op.drop_index("ix_analytics_events_course_id", table_name="analytics_events")
    op.drop_index("ix_analytics_events_student_id", table_name="analytics_events")
    op.drop_table("analytics_events")
    op.drop_index("ix_fragments_document_id", table_name="fragments")
    op.drop_index("ix_fragments_course_id", table_name="fragments")
    op.drop_table("fragments")
    op.drop_index("ix_documents_course_id", table_name="documents")
    op.drop_table("documents")
