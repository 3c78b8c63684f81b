"""Problem Records — write and read models for solved problems.

Invariants:
    - ProblemDraft carries everything needed to insert a problem row
    - draft_from_result() is pure; it copies, never recomputes, classification
      and explanation values
    - ProblemRecord.collection_ids is never empty for a persisted problem
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime

from explicaai.core.classify_problem import ClassificationResult
from explicaai.core.domain_types import (
    CollectionId, ProblemId, ProblemSource, ProblemStatus,
)
from explicaai.core.explanation_types import ExplanationResult


@dataclass(frozen=True)
class ProblemDraft:
    text: str
    explanation: str
    steps: list[dict]
    final_answer: str
    category: str
    confidence: float
    difficulty_level: int
    tags: list[str]
    was_retried: bool = False
    degraded: bool = False
    solved_time_ms: int = 0
    source: ProblemSource = ProblemSource.TEXT
    status: ProblemStatus = ProblemStatus.RESOLVED
    is_favorite: bool = False


@dataclass(frozen=True)
class ProblemRecord:
    id: ProblemId
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
    collection_ids: tuple[CollectionId, ...] = field(default_factory=tuple)


def draft_from_result(
    text: str,
    classification: ClassificationResult,
    result: ExplanationResult,
    source: ProblemSource = ProblemSource.TEXT,
) -> ProblemDraft:
    """Build the row to persist for an explained problem."""
    explanation = result.explanation
    steps = [asdict(step) for step in explanation.steps]
    if explanation.verification is not None:
        steps.append({**asdict(explanation.verification), "verification": True})
    return ProblemDraft(
        text=text.strip(),
        explanation=result.raw_output,
        steps=steps,
        final_answer=explanation.final_answer,
        category=classification.category.value,
        confidence=classification.confidence,
        difficulty_level=classification.difficulty_level,
        tags=list(classification.tags),
        was_retried=result.was_retried,
        degraded=result.degraded,
        solved_time_ms=result.elapsed_ms,
        source=source,
    )
