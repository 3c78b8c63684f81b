"""Collection ORM — named buckets that group solved problems.

Invariants:
    - name_key is the stripped, casefolded name and is unique
    - At most one row has is_default = true (Favoritos), enforced by the lifecycle
    - is_system rows accept only color/icon changes (enforced by the lifecycle)

Design Decisions:
    - name_key column instead of a lower(name) index: casefold handles accented
      names the same way on every backend
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from explicaai.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Collection(Base):
    """Collection entity — owns membership rows in problem_collections."""
    __tablename__ = "collections"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    name_key: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True, index=True,
    )
    description: Mapped[str] = mapped_column(
        String(500), nullable=False, default="",
    )
    color: Mapped[str] = mapped_column(String(7), nullable=False)
    icon: Mapped[str] = mapped_column(String(16), nullable=False)
    is_system: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )
