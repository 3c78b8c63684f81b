"""Problem Schemas — request/response models for the problem endpoints.

Invariants:
    - Problem text is stripped, then must be 1-1000 chars
    - request_id, when given, is a short opaque token chosen by the caller
    - Response models mirror core values; no computation happens here

Design Decisions:
    - Strip in a mode="before" validator so the length bounds apply to the stripped text
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from explicaai.core.domain_types import ProblemStatus

MAX_PROBLEM_LENGTH = 1000


class ProblemText(BaseModel):
    """Body carrying a single problem statement."""
    text: str = Field(min_length=1, max_length=MAX_PROBLEM_LENGTH)

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class ExplainRequest(ProblemText):
    request_id: str | None = Field(
        None, min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_\-]+$",
    )
    auto_save: bool = False
    collection_ids: list[UUID] = Field(default_factory=list)


class CollectionIdsRequest(BaseModel):
    collection_ids: list[UUID] = Field(default_factory=list)


class ProblemUpdate(BaseModel):
    """Editable fields of a saved problem; absent fields stay unchanged."""
    status: ProblemStatus | None = None
    tags: list[str] | None = Field(None, max_length=50)
    difficulty_level: int | None = None


class ClassificationResponse(BaseModel):
    category: str
    confidence: float
    tags: list[str]
    difficulty_level: int
    difficulty_description: str
    suggested_collection: str


class StepResponse(BaseModel):
    title: str
    explanation: str = ""
    calculation: str = ""
    result: str = ""


class ExplanationResponse(BaseModel):
    steps: list[StepResponse]
    verification: StepResponse | None = None
    final_answer: str
    complexity: str
    was_retried: bool
    degraded: bool
    attempts: int
    elapsed_ms: int


class ExplainResponse(BaseModel):
    request_id: str
    classification: ClassificationResponse
    explanation: ExplanationResponse
    problem_id: UUID | None = None
    collection_ids: list[UUID] = Field(default_factory=list)


class SimilarResponse(BaseModel):
    request_id: str
    exercises: str


class MembershipResponse(BaseModel):
    problem_id: UUID
    collection_ids: list[UUID]


class ProblemResponse(BaseModel):
    id: UUID
    text: str
    explanation: str
    steps: list[dict]
    final_answer: str
    category: str
    confidence: float
    difficulty_level: int
    tags: list[str]
    was_retried: bool
    degraded: bool
    solved_time_ms: int
    source: str
    status: str
    is_favorite: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    collection_ids: list[UUID] = Field(default_factory=list)


def problem_response(record, include_collections: bool = True) -> ProblemResponse:
    """ProblemResponse from a core ProblemRecord."""
    return ProblemResponse(
        id=record.id,
        text=record.text,
        explanation=record.explanation,
        steps=record.steps,
        final_answer=record.final_answer,
        category=record.category,
        confidence=record.confidence,
        difficulty_level=record.difficulty_level,
        tags=record.tags,
        was_retried=record.was_retried,
        degraded=record.degraded,
        solved_time_ms=record.solved_time_ms,
        source=record.source,
        status=record.status,
        is_favorite=record.is_favorite,
        created_at=record.created_at,
        updated_at=record.updated_at,
        collection_ids=list(record.collection_ids) if include_collections else [],
    )


class ProblemListResponse(BaseModel):
    problems: list[ProblemResponse]
    total: int
    limit: int
    offset: int


class FavoriteResponse(BaseModel):
    problem_id: UUID
    is_favorite: bool


class ProblemDeletedResponse(BaseModel):
    deleted: bool
    problem_id: UUID
