"""Stats Schemas — response models for the dashboard, collection stats and history."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CollectionUsageResponse(BaseModel):
    name: str
    icon: str
    color: str
    problem_count: int


class TagCountResponse(BaseModel):
    tag: str
    count: int


class GeneralStatsResponse(BaseModel):
    total_problems: int
    user_collections: int
    favorites: int
    problems_today: int
    problems_this_week: int
    average_difficulty: float
    total_solve_time_ms: int
    status_breakdown: dict[str, int]
    source_breakdown: dict[str, int]
    difficulty_breakdown: dict[int, int]
    top_collections: list[CollectionUsageResponse]
    top_tags: list[TagCountResponse]


class CollectionStatsResponse(BaseModel):
    collection_id: UUID
    name: str
    is_system: bool
    total_problems: int
    recently_added: int
    difficulty_breakdown: dict[int, int]
    source_breakdown: dict[str, int]


class HistoryEntryResponse(BaseModel):
    action: str
    created_at: datetime
    problem_id: UUID | None = None
    collection_id: UUID | None = None
    problem_text: str | None = None
    details: dict | None = None


class HistoryResponse(BaseModel):
    entries: list[HistoryEntryResponse] = Field(default_factory=list)
    limit: int
    offset: int
