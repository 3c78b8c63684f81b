"""ProblemCollection ORM — many-to-many membership between problems and collections.

Invariants:
    - (problem_id, collection_id) is the primary key: one row per pair
    - Both FKs cascade on delete at the database level

Design Decisions:
    - No ORM relationship(): the stores issue explicit queries, so memberships
      are never loaded lazily inside an async session
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from explicaai.db.base import Base


class ProblemCollection(Base):
    __tablename__ = "problem_collections"

    problem_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("problems.id", ondelete="CASCADE"),
        primary_key=True,
    )
    collection_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("collections.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
