"""Study Stats — read models and pure aggregation helpers for the stats endpoints.

Invariants:
    - Records are frozen snapshots built by the stats store
    - top_tags() counts each tag once per problem; ties keep first-seen order
    - round_tenth() rounds half-up to one decimal

Design Decisions:
    - Tags live in a JSON column, so they are counted here rather than in SQL
    - RECENT_DAYS is the single window for "this week" and "recently added"
"""

import math
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from explicaai.core.domain_types import CollectionId, ProblemId

RECENT_DAYS = 7
TOP_COLLECTIONS = 3
TOP_TAGS = 5


@dataclass(frozen=True)
class CollectionUsage:
    name: str
    icon: str
    color: str
    problem_count: int


@dataclass(frozen=True)
class GeneralStats:
    total_problems: int
    user_collections: int
    favorites: int
    problems_today: int
    problems_this_week: int
    average_difficulty: float
    total_solve_time_ms: int
    status_breakdown: dict[str, int] = field(default_factory=dict)
    source_breakdown: dict[str, int] = field(default_factory=dict)
    difficulty_breakdown: dict[int, int] = field(default_factory=dict)
    top_collections: tuple[CollectionUsage, ...] = field(default_factory=tuple)
    top_tags: tuple[tuple[str, int], ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CollectionStats:
    collection_id: CollectionId
    name: str
    is_system: bool
    total_problems: int
    recently_added: int
    difficulty_breakdown: dict[int, int] = field(default_factory=dict)
    source_breakdown: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class HistoryEntry:
    action: str
    created_at: datetime
    problem_id: ProblemId | None = None
    collection_id: CollectionId | None = None
    problem_text: str | None = None
    details: dict | None = None


def top_tags(
    tag_lists: Iterable[list[str] | None], limit: int = TOP_TAGS,
) -> tuple[tuple[str, int], ...]:
    counts: Counter[str] = Counter()
    for tags in tag_lists:
        counts.update(list(dict.fromkeys(tags or [])))
    return tuple(counts.most_common(limit))


def round_tenth(value: float | None) -> float:
    if not value:
        return 0.0
    return math.floor(float(value) * 10 + 0.5) / 10
