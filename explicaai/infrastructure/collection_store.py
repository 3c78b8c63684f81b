"""SQL Collection Store — CollectionStore on an AsyncSession.

Invariants:
    - No method commits; run_in_transaction() is the only commit/rollback point
    - Membership existence is checked by query, never by the identity map
    - Returned CollectionRecords are detached snapshots (safe after rollback)

Design Decisions:
    - Membership rows are deleted explicitly before their collection: SQLite
      does not enforce ON DELETE CASCADE unless foreign keys are switched on
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from explicaai.core.collection_rules import CollectionRecord, name_key
from explicaai.core.domain_types import CollectionId, HistoryAction, ProblemId
from explicaai.core.errors import ResourceNotFoundError
from explicaai.models.collection import Collection
from explicaai.models.history_log import HistoryLog
from explicaai.models.problem_collection import ProblemCollection

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _to_record(row: Collection, problem_count: int = 0) -> CollectionRecord:
    return CollectionRecord(
        id=CollectionId(row.id),
        name=row.name,
        description=row.description or "",
        color=row.color,
        icon=row.icon,
        is_system=row.is_system,
        is_default=row.is_default,
        problem_count=problem_count,
    )


class SqlCollectionStore:
    """Collections, memberships and history on one database session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def run_in_transaction(self, fn: Callable[[], Awaitable[T]]) -> T:
        try:
            result = await fn()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result

    # ─── Collections ────────────────────────────────────────────

    async def find_collection_by_id(
        self, collection_id: CollectionId,
    ) -> CollectionRecord | None:
        row = await self.session.get(Collection, collection_id)
        if row is None:
            return None
        return _to_record(row, await self._count_problems(collection_id))

    async def find_collection_by_name(self, name: str) -> CollectionRecord | None:
        result = await self.session.execute(
            select(Collection).where(Collection.name_key == name_key(name)),
        )
        row = result.scalar_one_or_none()
        return _to_record(row) if row else None

    async def find_default_collection(self) -> CollectionRecord | None:
        result = await self.session.execute(
            select(Collection).where(Collection.is_default.is_(True)).limit(1),
        )
        row = result.scalar_one_or_none()
        return _to_record(row) if row else None

    async def list_collections(self) -> list[CollectionRecord]:
        problem_count = func.count(ProblemCollection.problem_id)
        result = await self.session.execute(
            select(Collection, problem_count)
            .outerjoin(
                ProblemCollection,
                ProblemCollection.collection_id == Collection.id,
            )
            .group_by(Collection.id)
            .order_by(
                Collection.is_default.desc(),
                Collection.is_system.desc(),
                Collection.name,
            ),
        )
        return [_to_record(row, count) for row, count in result.all()]

    async def insert_collection(
        self,
        *,
        name: str,
        description: str,
        color: str,
        icon: str,
        is_system: bool = False,
        is_default: bool = False,
    ) -> CollectionRecord:
        row = Collection(
            name=name,
            name_key=name_key(name),
            description=description,
            color=color,
            icon=icon,
            is_system=is_system,
            is_default=is_default,
        )
        self.session.add(row)
        await self.session.flush()
        return _to_record(row)

    async def update_collection(
        self, collection_id: CollectionId, changes: dict,
    ) -> CollectionRecord:
        row = await self.session.get(Collection, collection_id)
        if row is None:
            raise ResourceNotFoundError("Collection", str(collection_id))
        for field, value in changes.items():
            setattr(row, field, value)
        if "name" in changes:
            row.name_key = name_key(changes["name"])
        await self.session.flush()
        return _to_record(row, await self._count_problems(collection_id))

    async def delete_collection(self, collection_id: CollectionId) -> None:
        await self.session.execute(
            delete(Collection).where(Collection.id == collection_id),
        )

    # ─── Memberships ────────────────────────────────────────────

    async def insert_membership(
        self, problem_id: ProblemId, collection_id: CollectionId,
    ) -> bool:
        """Add the pair; False if it already existed."""
        existing = await self.session.execute(
            select(func.count()).select_from(ProblemCollection).where(
                ProblemCollection.problem_id == problem_id,
                ProblemCollection.collection_id == collection_id,
            ),
        )
        if existing.scalar_one():
            return False
        self.session.add(
            ProblemCollection(problem_id=problem_id, collection_id=collection_id),
        )
        await self.session.flush()
        return True

    async def delete_membership(
        self, problem_id: ProblemId, collection_id: CollectionId,
    ) -> bool:
        result = await self.session.execute(
            delete(ProblemCollection).where(
                ProblemCollection.problem_id == problem_id,
                ProblemCollection.collection_id == collection_id,
            ),
        )
        return result.rowcount > 0

    async def delete_memberships_of_collection(
        self, collection_id: CollectionId,
    ) -> int:
        result = await self.session.execute(
            delete(ProblemCollection).where(
                ProblemCollection.collection_id == collection_id,
            ),
        )
        return result.rowcount

    async def count_memberships(self, problem_id: ProblemId) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(ProblemCollection).where(
                ProblemCollection.problem_id == problem_id,
            ),
        )
        return result.scalar_one()

    async def count_other_memberships(
        self, problem_id: ProblemId, collection_id: CollectionId,
    ) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(ProblemCollection).where(
                ProblemCollection.problem_id == problem_id,
                ProblemCollection.collection_id != collection_id,
            ),
        )
        return result.scalar_one()

    async def problem_ids_in_collection(
        self, collection_id: CollectionId,
    ) -> list[ProblemId]:
        result = await self.session.execute(
            select(ProblemCollection.problem_id)
            .where(ProblemCollection.collection_id == collection_id)
            .order_by(ProblemCollection.added_at),
        )
        return [ProblemId(pid) for pid in result.scalars().all()]

    async def collection_ids_of_problem(
        self, problem_id: ProblemId,
    ) -> list[CollectionId]:
        result = await self.session.execute(
            select(ProblemCollection.collection_id)
            .where(ProblemCollection.problem_id == problem_id)
            .order_by(ProblemCollection.added_at),
        )
        return [CollectionId(cid) for cid in result.scalars().all()]

    # ─── History ────────────────────────────────────────────────

    async def log_action(
        self,
        action: HistoryAction,
        *,
        problem_id: ProblemId | None = None,
        collection_id: CollectionId | None = None,
        details: dict | None = None,
    ) -> None:
        self.session.add(HistoryLog(
            action=action.value,
            problem_id=problem_id,
            collection_id=collection_id,
            details=details,
        ))
        await self.session.flush()

    async def _count_problems(self, collection_id: CollectionId) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(ProblemCollection).where(
                ProblemCollection.collection_id == collection_id,
            ),
        )
        return result.scalar_one()
