"""Problem ORM — a solved math problem with its classification and explanation.

Invariants:
    - text is non-nullable, at most 1000 characters after strip
    - steps holds the parsed explanation steps (empty for answer-only results)
    - Every problem has at least one row in problem_collections (enforced by the lifecycle)

Design Decisions:
    - JSON columns for steps and tags: read back whole, never queried by element
    - explanation keeps the raw model output next to the parsed steps
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, String, Text, Integer, Float, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from explicaai.db.base import Base


class Problem(Base):
    """Problem entity — filed into collections via problem_collections."""
    __tablename__ = "problems"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    steps: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    final_answer: Mapped[str] = mapped_column(Text, nullable=False, default="")
    source: Mapped[str] = mapped_column(
        String(10), nullable=False, default="text",
    )
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    difficulty_level: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1,
    )
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    was_retried: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    degraded: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    solved_time_ms: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="resolved",
    )
    is_favorite: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
