"""SQL Stats Store — StatsStore on an AsyncSession.

Invariants:
    - Read-only: no method adds, flushes or commits
    - "Today" starts at midnight UTC of now; the recent window is RECENT_DAYS
    - collection_stats() returns None for an unknown collection
"""

from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from explicaai.core.domain_types import CollectionId, HistoryAction, ProblemId
from explicaai.core.study_stats import (
    RECENT_DAYS,
    TOP_COLLECTIONS,
    CollectionStats,
    CollectionUsage,
    GeneralStats,
    HistoryEntry,
    round_tenth,
    top_tags,
)
from explicaai.models.collection import Collection
from explicaai.models.history_log import HistoryLog
from explicaai.models.problem import Problem
from explicaai.models.problem_collection import ProblemCollection


class SqlStatsStore:
    """Aggregates over problems, collections and history_log."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def general_stats(self, now: datetime) -> GeneralStats:
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_ago = now - timedelta(days=RECENT_DAYS)

        totals = (await self.session.execute(
            select(
                func.count(Problem.id),
                func.avg(Problem.difficulty_level),
                func.coalesce(func.sum(Problem.solved_time_ms), 0),
            ),
        )).one()
        tag_lists = (await self.session.execute(select(Problem.tags))).scalars().all()

        return GeneralStats(
            total_problems=totals[0],
            user_collections=await self._count(
                select(func.count(Collection.id)).where(Collection.is_system.is_(False)),
            ),
            favorites=await self._count(
                select(func.count(Problem.id)).where(Problem.is_favorite.is_(True)),
            ),
            problems_today=await self._count(
                select(func.count(Problem.id)).where(Problem.created_at >= today),
            ),
            problems_this_week=await self._count(
                select(func.count(Problem.id)).where(Problem.created_at >= week_ago),
            ),
            average_difficulty=round_tenth(totals[1]),
            total_solve_time_ms=int(totals[2]),
            status_breakdown=await self._breakdown(Problem.status),
            source_breakdown=await self._breakdown(Problem.source),
            difficulty_breakdown=await self._breakdown(Problem.difficulty_level),
            top_collections=await self._top_collections(),
            top_tags=top_tags(tag_lists),
        )

    async def collection_stats(
        self, collection_id: CollectionId, now: datetime,
    ) -> CollectionStats | None:
        collection = await self.session.get(Collection, collection_id)
        if collection is None:
            return None
        in_collection = ProblemCollection.collection_id == collection_id
        return CollectionStats(
            collection_id=CollectionId(collection.id),
            name=collection.name,
            is_system=collection.is_system,
            total_problems=await self._count(
                select(func.count()).select_from(ProblemCollection).where(in_collection),
            ),
            recently_added=await self._count(
                select(func.count()).select_from(ProblemCollection).where(
                    in_collection,
                    ProblemCollection.added_at >= now - timedelta(days=RECENT_DAYS),
                ),
            ),
            difficulty_breakdown=await self._breakdown(
                Problem.difficulty_level, in_collection,
            ),
            source_breakdown=await self._breakdown(Problem.source, in_collection),
        )

    async def history(
        self, limit: int = 20, offset: int = 0, action: HistoryAction | None = None,
    ) -> list[HistoryEntry]:
        query = (
            select(HistoryLog, Problem.text)
            .outerjoin(Problem, Problem.id == HistoryLog.problem_id)
            .order_by(HistoryLog.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        if action is not None:
            query = query.where(HistoryLog.action == action.value)
        result = await self.session.execute(query)
        return [
            HistoryEntry(
                action=entry.action,
                created_at=entry.created_at,
                problem_id=ProblemId(entry.problem_id) if entry.problem_id else None,
                collection_id=(
                    CollectionId(entry.collection_id) if entry.collection_id else None
                ),
                problem_text=text,
                details=entry.details,
            )
            for entry, text in result.all()
        ]

    async def _count(self, query) -> int:
        return (await self.session.execute(query)).scalar_one()

    async def _breakdown(self, column, in_collection=None) -> dict:
        query = select(column, func.count(Problem.id)).group_by(column).order_by(column)
        if in_collection is not None:
            query = query.join(
                ProblemCollection, ProblemCollection.problem_id == Problem.id,
            ).where(in_collection)
        result = await self.session.execute(query)
        return {key: count for key, count in result.all()}

    async def _top_collections(self) -> tuple[CollectionUsage, ...]:
        problem_count = func.count(ProblemCollection.problem_id)
        result = await self.session.execute(
            select(Collection.name, Collection.icon, Collection.color, problem_count)
            .outerjoin(
                ProblemCollection, ProblemCollection.collection_id == Collection.id,
            )
            .group_by(Collection.id, Collection.name, Collection.icon, Collection.color)
            .order_by(problem_count.desc(), Collection.name)
            .limit(TOP_COLLECTIONS),
        )
        return tuple(
            CollectionUsage(name=name, icon=icon, color=color, problem_count=count)
            for name, icon, color, count in result.all()
        )
