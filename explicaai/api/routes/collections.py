"""Collection Routes — CRUD, stats and delete-with-migration for collections.

Invariants:
    - DELETE never orphans a problem; the response reports how many problems
      were re-homed in Favoritos and how many only lost this membership
    - Favoritos (the default collection) answers 403 on DELETE
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from explicaai.api.dependencies import get_lifecycle, get_problem_store, get_study_stats
from explicaai.core.collection_rules import CollectionRecord
from explicaai.core.domain_types import CollectionId
from explicaai.infrastructure.problem_store import SqlProblemStore
from explicaai.schemas.collection import (
    CollectionCreate, CollectionResponse, CollectionUpdate, DeletionResponse,
)
from explicaai.schemas.problem import ProblemResponse, problem_response
from explicaai.schemas.stats import CollectionStatsResponse
from explicaai.services.collection_lifecycle import CollectionLifecycleManager
from explicaai.services.study_stats import StudyStatsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/collections", tags=["collections"])


def _collection_response(record: CollectionRecord) -> CollectionResponse:
    return CollectionResponse(
        id=record.id,
        name=record.name,
        description=record.description,
        color=record.color,
        icon=record.icon,
        is_system=record.is_system,
        is_default=record.is_default,
        problem_count=record.problem_count,
    )


@router.get("", response_model=list[CollectionResponse])
async def list_collections(
    lifecycle: CollectionLifecycleManager = Depends(get_lifecycle),
):
    """All collections with problem counts; Favoritos first."""
    return [_collection_response(r) for r in await lifecycle.list_collections()]


@router.post(
    "", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED,
)
async def create_collection(
    body: CollectionCreate,
    lifecycle: CollectionLifecycleManager = Depends(get_lifecycle),
):
    record = await lifecycle.create_collection(
        body.name, body.description, color=body.color, icon=body.icon,
    )
    return _collection_response(record)


@router.get("/{collection_id}", response_model=CollectionResponse)
async def get_collection(
    collection_id: UUID,
    lifecycle: CollectionLifecycleManager = Depends(get_lifecycle),
):
    return _collection_response(
        await lifecycle.get_collection(CollectionId(collection_id)),
    )


@router.patch("/{collection_id}", response_model=CollectionResponse)
async def update_collection(
    collection_id: UUID,
    body: CollectionUpdate,
    lifecycle: CollectionLifecycleManager = Depends(get_lifecycle),
):
    """Rename, describe, recolor. System collections: color and icon only."""
    record = await lifecycle.update_collection(
        CollectionId(collection_id),
        name=body.name,
        description=body.description,
        color=body.color,
        icon=body.icon,
    )
    return _collection_response(record)


@router.delete("/{collection_id}", response_model=DeletionResponse)
async def delete_collection(
    collection_id: UUID,
    lifecycle: CollectionLifecycleManager = Depends(get_lifecycle),
):
    report = await lifecycle.delete_collection(CollectionId(collection_id))
    return DeletionResponse(
        deleted=True,
        collection_id=report.collection_id,
        problems_migrated=report.problems_migrated,
        problems_detached=report.problems_detached,
    )


@router.get("/{collection_id}/problems", response_model=list[ProblemResponse])
async def list_collection_problems(
    collection_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    lifecycle: CollectionLifecycleManager = Depends(get_lifecycle),
    problems: SqlProblemStore = Depends(get_problem_store),
):
    """Problems filed in the collection, most recently added first."""
    await lifecycle.get_collection(CollectionId(collection_id))
    records = await problems.list_collection_problems(
        CollectionId(collection_id), limit=limit, offset=offset,
    )
    return [problem_response(r, include_collections=False) for r in records]


@router.get("/{collection_id}/stats", response_model=CollectionStatsResponse)
async def collection_stats(
    collection_id: UUID,
    stats: StudyStatsService = Depends(get_study_stats),
):
    """Problem count, recent additions and difficulty/source breakdowns."""
    result = await stats.collection(CollectionId(collection_id))
    return CollectionStatsResponse(
        collection_id=result.collection_id,
        name=result.name,
        is_system=result.is_system,
        total_problems=result.total_problems,
        recently_added=result.recently_added,
        difficulty_breakdown=result.difficulty_breakdown,
        source_breakdown=result.source_breakdown,
    )
