"""SQL Problem Store — ProblemStore on an AsyncSession.

Invariants:
    - insert_problem() flushes but never commits; the caller's transaction decides
    - get_problem() and list_problems() return problems with their current
      collection ids
    - delete_problem() removes membership rows first; SQLite does not cascade

Design Decisions:
    - Collection filter as an IN subquery, so listing and counting never see
      one problem twice
    - Tag filter matches the quoted element inside the JSON text; the engine
      serializes JSON with ensure_ascii=False so accented tags match
"""

from collections import defaultdict

from sqlalchemy import String, cast, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from explicaai.core.domain_types import CollectionId, ProblemId
from explicaai.core.errors import ResourceNotFoundError
from explicaai.core.problem_records import ProblemDraft, ProblemRecord
from explicaai.core.problem_rules import ProblemFilters
from explicaai.models.problem import Problem
from explicaai.models.problem_collection import ProblemCollection


def _to_record(
    row: Problem, collection_ids: tuple[CollectionId, ...] = (),
) -> ProblemRecord:
    return ProblemRecord(
        id=ProblemId(row.id),
        text=row.text,
        explanation=row.explanation,
        steps=list(row.steps or []),
        final_answer=row.final_answer,
        category=row.category,
        confidence=row.confidence,
        difficulty_level=row.difficulty_level,
        tags=list(row.tags or []),
        was_retried=row.was_retried,
        degraded=row.degraded,
        solved_time_ms=row.solved_time_ms,
        source=row.source,
        status=row.status,
        is_favorite=row.is_favorite,
        created_at=row.created_at,
        updated_at=row.updated_at,
        collection_ids=collection_ids,
    )


class SqlProblemStore:
    """Problem rows on one database session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert_problem(self, draft: ProblemDraft) -> ProblemId:
        row = Problem(
            text=draft.text,
            explanation=draft.explanation,
            steps=draft.steps,
            final_answer=draft.final_answer,
            source=draft.source.value,
            category=draft.category,
            confidence=draft.confidence,
            difficulty_level=draft.difficulty_level,
            tags=draft.tags,
            was_retried=draft.was_retried,
            degraded=draft.degraded,
            solved_time_ms=draft.solved_time_ms,
            status=draft.status.value,
            is_favorite=draft.is_favorite,
        )
        self.session.add(row)
        await self.session.flush()
        return ProblemId(row.id)

    async def get_problem(self, problem_id: ProblemId) -> ProblemRecord | None:
        row = await self.session.get(Problem, problem_id)
        if row is None:
            return None
        result = await self.session.execute(
            select(ProblemCollection.collection_id)
            .where(ProblemCollection.problem_id == problem_id)
            .order_by(ProblemCollection.added_at),
        )
        collection_ids = tuple(CollectionId(c) for c in result.scalars().all())
        return _to_record(row, collection_ids)

    async def list_collection_problems(
        self, collection_id: CollectionId, limit: int = 50, offset: int = 0,
    ) -> list[ProblemRecord]:
        result = await self.session.execute(
            select(Problem)
            .join(ProblemCollection, ProblemCollection.problem_id == Problem.id)
            .where(ProblemCollection.collection_id == collection_id)
            .order_by(ProblemCollection.added_at.desc())
            .limit(limit)
            .offset(offset),
        )
        return [_to_record(row) for row in result.scalars().all()]

    async def list_problems(self, filters: ProblemFilters) -> list[ProblemRecord]:
        column = getattr(Problem, filters.sort)
        order = column.desc() if filters.descending else column.asc()
        result = await self.session.execute(
            select(Problem)
            .where(*_conditions(filters))
            .order_by(order, Problem.id)
            .limit(filters.limit)
            .offset(filters.offset),
        )
        rows = result.scalars().all()
        memberships = await self._memberships([row.id for row in rows])
        return [_to_record(row, memberships.get(row.id, ())) for row in rows]

    async def count_problems(self, filters: ProblemFilters) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Problem).where(*_conditions(filters)),
        )
        return result.scalar_one()

    async def update_problem(
        self, problem_id: ProblemId, changes: dict,
    ) -> ProblemRecord:
        row = await self.session.get(Problem, problem_id)
        if row is None:
            raise ResourceNotFoundError("Problem", str(problem_id))
        for field, value in changes.items():
            setattr(row, field, value)
        await self.session.flush()
        return await self.get_problem(problem_id)

    async def delete_problem(self, problem_id: ProblemId) -> bool:
        """Delete the problem and its memberships; False if it did not exist."""
        await self.session.execute(
            delete(ProblemCollection).where(ProblemCollection.problem_id == problem_id),
        )
        result = await self.session.execute(
            delete(Problem).where(Problem.id == problem_id),
        )
        return result.rowcount > 0

    async def _memberships(
        self, problem_ids: list,
    ) -> dict[ProblemId, tuple[CollectionId, ...]]:
        if not problem_ids:
            return {}
        result = await self.session.execute(
            select(ProblemCollection.problem_id, ProblemCollection.collection_id)
            .where(ProblemCollection.problem_id.in_(problem_ids))
            .order_by(ProblemCollection.added_at),
        )
        grouped: dict[ProblemId, list[CollectionId]] = defaultdict(list)
        for problem_id, collection_id in result.all():
            grouped[problem_id].append(CollectionId(collection_id))
        return {pid: tuple(cids) for pid, cids in grouped.items()}


def _conditions(filters: ProblemFilters) -> list:
    conditions = []
    if filters.search:
        pattern = _like_pattern(filters.search)
        conditions.append(or_(
            Problem.text.ilike(pattern, escape="\\"),
            Problem.explanation.ilike(pattern, escape="\\"),
        ))
    if filters.status is not None:
        conditions.append(Problem.status == filters.status.value)
    if filters.source:
        conditions.append(Problem.source == filters.source)
    if filters.favorite is not None:
        conditions.append(Problem.is_favorite == filters.favorite)
    if filters.collection_id is not None:
        conditions.append(Problem.id.in_(
            select(ProblemCollection.problem_id)
            .where(ProblemCollection.collection_id == filters.collection_id),
        ))
    if filters.difficulty_min is not None:
        conditions.append(Problem.difficulty_level >= filters.difficulty_min)
    if filters.difficulty_max is not None:
        conditions.append(Problem.difficulty_level <= filters.difficulty_max)
    for tag in filters.tags:
        # JSON text match on the quoted element
        conditions.append(
            cast(Problem.tags, String).like(_like_pattern(f'"{tag}"'), escape="\\"),
        )
    if filters.date_from is not None:
        conditions.append(Problem.created_at >= filters.date_from)
    if filters.date_to is not None:
        conditions.append(Problem.created_at <= filters.date_to)
    return conditions


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
