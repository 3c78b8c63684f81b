"""HistoryLog ORM — audit trail of collection and membership actions.

Invariants:
    - Written in the same transaction as the action it records
    - problem_id is SET NULL when the problem goes away; collection_id has no FK
      so entries outlive deleted collections

Design Decisions:
    - Logging table, not enforcement: only the history report reads it back
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from explicaai.db.base import Base


class HistoryLog(Base):
    """History entry for one lifecycle action."""
    __tablename__ = "history_log"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    problem_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("problems.id", ondelete="SET NULL"),
        nullable=True,
    )
    collection_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
