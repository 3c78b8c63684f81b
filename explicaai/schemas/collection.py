"""Collection Schemas — request/response models for the collection endpoints.

Invariants:
    - Field rules with pt-BR messages (name length, description length, hex color)
      live in core/collection_rules.py; schemas only bound raw input size
    - CollectionUpdate with no fields is rejected by the lifecycle, not here
"""

from uuid import UUID

from pydantic import BaseModel, Field


class CollectionCreate(BaseModel):
    name: str = Field(max_length=200)
    description: str = Field("", max_length=1000)
    color: str | None = Field(None, max_length=16)
    icon: str | None = Field(None, max_length=16)


class CollectionUpdate(BaseModel):
    name: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=1000)
    color: str | None = Field(None, max_length=16)
    icon: str | None = Field(None, max_length=16)


class CollectionResponse(BaseModel):
    id: UUID
    name: str
    description: str
    color: str
    icon: str
    is_system: bool
    is_default: bool
    problem_count: int = 0


class DeletionResponse(BaseModel):
    deleted: bool
    collection_id: UUID
    problems_migrated: int
    problems_detached: int
