"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ProblemId, CollectionId wrap UUIDs — never use bare UUID in domain logic
    - Category is a closed set; ALGEBRA is the built-in default
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

ProblemId = NewType("ProblemId", UUID)
CollectionId = NewType("CollectionId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

Confidence = NewType("Confidence", float)         # 0.0–0.95 (0.5 for default)
DifficultyLevel = NewType("DifficultyLevel", int)  # 1–5


# ─── Enums ───────────────────────────────────────────────────────

class Category(str, Enum):
    """Subject categories. Values double as system collection names."""
    ALGEBRA = "Álgebra Básica"
    GEOMETRY = "Geometria"
    FUNCTIONS = "Funções"
    ENEM = "Preparação ENEM"
    REVIEW = "Para Revisar"

    @property
    def slug(self) -> str:
        return "-".join(self.value.lower().split())


DEFAULT_CATEGORY = Category.ALGEBRA


class Complexity(str, Enum):
    """Structural complexity tier — selects the prompt template."""
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class PromptVariant(str, Enum):
    """Prompt used by one tier of the generation ladder."""
    NORMAL = "normal"
    STRICT = "strict"
    FALLBACK = "fallback"


class GenerationState(str, Enum):
    """Orchestrator states — see core/generation_ladder.py for transitions."""
    IDLE = "idle"
    ATTEMPT_NORMAL = "attempt_normal"
    ATTEMPT_STRICT = "attempt_strict"
    ATTEMPT_FALLBACK = "attempt_fallback"
    DONE = "done"
    DONE_DEGRADED = "done_degraded"
    CANCELLED = "cancelled"


class GenerationEvent(str, Enum):
    """Inputs to the ladder. INVALID is the format non-conformance signal."""
    START = "start"
    VALID = "valid"
    INVALID = "invalid"
    CANCEL = "cancel"


class ProblemSource(str, Enum):
    TEXT = "text"
    SIMILAR = "similar"


class ProblemStatus(str, Enum):
    RESOLVED = "resolved"
    STUDYING = "studying"
    REVIEW = "review"


class HistoryAction(str, Enum):
    """Actions recorded in history_log by the collection and problem services."""
    CREATE_COLLECTION = "create_collection"
    UPDATE_COLLECTION = "update_collection"
    DELETE_COLLECTION = "delete_collection"
    SAVE_PROBLEM = "save_problem"
    ADD_TO_COLLECTIONS = "add_to_collections"
    REMOVE_FROM_COLLECTION = "remove_from_collection"
    REPLACE_COLLECTIONS = "replace_collections"
    UPDATE_PROBLEM = "update_problem"
    FAVORITE = "favorite"
    UNFAVORITE = "unfavorite"
    DELETE_PROBLEM = "delete_problem"
