"""Problem Rules — pure validation and query parameters for stored problems.

Invariants:
    - check_* functions return None if valid, or an error message (pt-BR)
    - normalize_tags() strips, drops empties and duplicates, keeps first-seen order
    - ProblemFilters.sort is always one of SORT_FIELDS

Design Decisions:
    - Same message-or-None shape as collection_rules: the problem library picks
      the exception and the field
    - Tag filters match every given tag (AND), like the saved-problems search
"""

from dataclasses import dataclass, field
from datetime import datetime

from explicaai.core.domain_types import CollectionId, ProblemStatus

MAX_TAGS_PER_PROBLEM = 10
MAX_TAG_LENGTH = 30
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5

SORT_FIELDS = ("created_at", "updated_at", "difficulty_level", "confidence", "solved_time_ms")

UPDATABLE_FIELDS = ("status", "tags", "difficulty_level")


def check_status(status: str | None) -> str | None:
    if status is None:
        return None
    if status not in {s.value for s in ProblemStatus}:
        allowed = ", ".join(s.value for s in ProblemStatus)
        return f"Status inválido. Use um de: {allowed}"
    return None


def check_difficulty(level: int | None) -> str | None:
    if level is None:
        return None
    if not MIN_DIFFICULTY <= level <= MAX_DIFFICULTY:
        return f"Dificuldade deve ser entre {MIN_DIFFICULTY} e {MAX_DIFFICULTY}"
    return None


def check_tags(tags: list[str] | None) -> str | None:
    if tags is None:
        return None
    cleaned = normalize_tags(tags)
    if len(cleaned) > MAX_TAGS_PER_PROBLEM:
        return f"Máximo de {MAX_TAGS_PER_PROBLEM} tags por problema"
    if any(len(tag) > MAX_TAG_LENGTH for tag in cleaned):
        return f"Cada tag deve ter no máximo {MAX_TAG_LENGTH} caracteres"
    return None


def normalize_tags(tags: list[str]) -> list[str]:
    return list(dict.fromkeys(t.strip() for t in tags if t and t.strip()))


@dataclass(frozen=True)
class ProblemFilters:
    """Listing and search parameters for saved problems. None means no filter."""
    search: str | None = None
    status: ProblemStatus | None = None
    source: str | None = None
    favorite: bool | None = None
    collection_id: CollectionId | None = None
    difficulty_min: int | None = None
    difficulty_max: int | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    date_from: datetime | None = None
    date_to: datetime | None = None
    sort: str = "created_at"
    descending: bool = True
    limit: int = 20
    offset: int = 0

    def __post_init__(self):
        if self.sort not in SORT_FIELDS:
            raise ValueError(f"sort must be one of {SORT_FIELDS}")
