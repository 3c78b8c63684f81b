"""Stats Routes — study dashboard and activity history.

Invariants:
    - Read-only: nothing here writes to the database
    - History is newest first and can be narrowed to one action
"""

from fastapi import APIRouter, Depends, Query

from explicaai.api.dependencies import get_study_stats
from explicaai.core.domain_types import HistoryAction
from explicaai.schemas.stats import (
    CollectionUsageResponse,
    GeneralStatsResponse,
    HistoryEntryResponse,
    HistoryResponse,
    TagCountResponse,
)
from explicaai.services.study_stats import StudyStatsService

router = APIRouter(prefix="/api/v1/stats", tags=["stats"])


@router.get("", response_model=GeneralStatsResponse)
async def general_stats(
    stats: StudyStatsService = Depends(get_study_stats),
):
    """Totals, recent activity, breakdowns, top collections and tags."""
    result = await stats.general()
    return GeneralStatsResponse(
        total_problems=result.total_problems,
        user_collections=result.user_collections,
        favorites=result.favorites,
        problems_today=result.problems_today,
        problems_this_week=result.problems_this_week,
        average_difficulty=result.average_difficulty,
        total_solve_time_ms=result.total_solve_time_ms,
        status_breakdown=result.status_breakdown,
        source_breakdown=result.source_breakdown,
        difficulty_breakdown=result.difficulty_breakdown,
        top_collections=[
            CollectionUsageResponse(
                name=c.name, icon=c.icon, color=c.color, problem_count=c.problem_count,
            )
            for c in result.top_collections
        ],
        top_tags=[TagCountResponse(tag=tag, count=count) for tag, count in result.top_tags],
    )


@router.get("/history", response_model=HistoryResponse)
async def history(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    action: HistoryAction | None = None,
    stats: StudyStatsService = Depends(get_study_stats),
):
    entries = await stats.history(limit=limit, offset=offset, action=action)
    return HistoryResponse(
        entries=[
            HistoryEntryResponse(
                action=e.action,
                created_at=e.created_at,
                problem_id=e.problem_id,
                collection_id=e.collection_id,
                problem_text=e.problem_text,
                details=e.details,
            )
            for e in entries
        ],
        limit=limit,
        offset=offset,
    )
