"""Initial schema — collections, problems, problem_collections, history_log.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "collections",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("name_key", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=False, server_default=""),
        sa.Column("color", sa.String(7), nullable=False),
        sa.Column("icon", sa.String(16), nullable=False),
        sa.Column("is_system", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_collections_name_key", "collections", ["name_key"], unique=True)

    op.create_table(
        "problems",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("explanation", sa.Text, nullable=False, server_default=""),
        sa.Column("steps", sa.JSON, nullable=False),
        sa.Column("final_answer", sa.Text, nullable=False, server_default=""),
        sa.Column("source", sa.String(10), nullable=False, server_default="text"),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("confidence", sa.Float, nullable=False, server_default="0"),
        sa.Column("difficulty_level", sa.Integer, nullable=False, server_default="1"),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("was_retried", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("degraded", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("solved_time_ms", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="resolved"),
        sa.Column("is_favorite", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_problems_category", "problems", ["category"])

    op.create_table(
        "problem_collections",
        sa.Column(
            "problem_id", UUID(as_uuid=True),
            sa.ForeignKey("problems.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "collection_id", UUID(as_uuid=True),
            sa.ForeignKey("collections.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_problem_collections_collection_id", "problem_collections", ["collection_id"],
    )

    op.create_table(
        "history_log",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column(
            "problem_id", UUID(as_uuid=True),
            sa.ForeignKey("problems.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("collection_id", UUID(as_uuid=True), nullable=True),
        sa.Column("details", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("history_log")
    op.drop_index("ix_problem_collections_collection_id", table_name="problem_collections")
    op.drop_table("problem_collections")
    op.drop_index("ix_problems_category", table_name="problems")
    op.drop_table("problems")
    op.drop_index("ix_collections_name_key", table_name="collections")
    op.drop_table("collections")
