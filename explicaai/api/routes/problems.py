"""Problem Routes — classify, explain (cancellable), similar exercises, saved problems.

Invariants:
    - Every in-flight explanation is registered in _cancel_tokens under its
      request_id and removed when the request finishes, whatever the outcome
    - POST /explain/{request_id}/cancel only fires a token; the explaining
      request itself answers 499 EXPLANATION_CANCELLED
    - Routes hold no business logic: classifier, intake, library and lifecycle decide
    - GET "" is both the listing and the advanced search (text, tags, range filters)

Design Decisions:
    - _cancel_tokens as module-level dict: single-process uvicorn; a cancel
      request must reach the worker running the explanation
    - request_id chosen by the caller so it can cancel before the response arrives;
      generated (uuid4 hex) when absent
"""

import logging
from datetime import datetime
from typing import Literal
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, Query, status

from explicaai.api.dependencies import (
    get_classifier,
    get_intake,
    get_library,
    get_lifecycle,
    get_orchestrator,
    get_problem_store,
)
from explicaai.core.cancellation import CancelToken
from explicaai.core.classification_cache import CachedClassifier
from explicaai.core.classify_problem import ClassificationResult, suggest_collection
from explicaai.core.domain_types import (
    CollectionId, ProblemId, ProblemSource, ProblemStatus,
)
from explicaai.core.errors import RequestInFlightError, ResourceNotFoundError
from explicaai.core.explanation_types import ExplanationResult, ExplanationStep
from explicaai.core.problem_rules import SORT_FIELDS, ProblemFilters, normalize_tags
from explicaai.infrastructure.problem_store import SqlProblemStore
from explicaai.schemas.problem import (
    ClassificationResponse,
    CollectionIdsRequest,
    ExplainRequest,
    ExplainResponse,
    ExplanationResponse,
    FavoriteResponse,
    MembershipResponse,
    ProblemDeletedResponse,
    ProblemListResponse,
    ProblemResponse,
    ProblemText,
    ProblemUpdate,
    SimilarResponse,
    StepResponse,
    problem_response,
)
from explicaai.services.collection_lifecycle import CollectionLifecycleManager
from explicaai.services.generation_orchestrator import GenerationOrchestrator
from explicaai.services.problem_intake import ProblemIntake
from explicaai.services.problem_library import ProblemLibrary

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/problems", tags=["problems"])

_cancel_tokens: dict[str, CancelToken] = {}


def _register_token(request_id: str | None) -> CancelToken:
    request_id = request_id or uuid4().hex
    if request_id in _cancel_tokens:
        raise RequestInFlightError(request_id)
    token = CancelToken(request_id)
    _cancel_tokens[request_id] = token
    return token


# ─── Classification ──────────────────────────────────────────────

@router.post("/classify", response_model=ClassificationResponse)
async def classify_problem(
    body: ProblemText,
    classifier: CachedClassifier = Depends(get_classifier),
):
    """Category, difficulty and tags. Never calls the model."""
    return _classification_response(classifier.classify(body.text))


@router.get("/classifier/stats")
async def classifier_stats(
    classifier: CachedClassifier = Depends(get_classifier),
):
    return classifier.stats()


# ─── Explanation ─────────────────────────────────────────────────

@router.post("/explain", response_model=ExplainResponse)
async def explain_problem(
    body: ExplainRequest,
    intake: ProblemIntake = Depends(get_intake),
):
    """Step-by-step explanation; optionally files the problem into collections."""
    token = _register_token(body.request_id)
    try:
        outcome = await intake.solve(
            body.text,
            token,
            auto_save=body.auto_save,
            collection_ids=[CollectionId(c) for c in body.collection_ids],
        )
    finally:
        _cancel_tokens.pop(token.request_id, None)

    return ExplainResponse(
        request_id=token.request_id,
        classification=_classification_response(outcome.classification),
        explanation=_explanation_response(outcome.result),
        problem_id=outcome.problem_id,
        collection_ids=list(outcome.collection_ids),
    )


@router.post("/explain/{request_id}/cancel")
async def cancel_explanation(request_id: str):
    """Fire the cancel token of an in-flight explanation."""
    token = _cancel_tokens.get(request_id)
    if token is None:
        raise ResourceNotFoundError("Explanation", request_id)
    token.cancel()
    logger.info("Cancellation requested", extra={"request_id": request_id})
    return {"request_id": request_id, "cancelled": True}


@router.post("/similar", response_model=SimilarResponse)
async def similar_exercises(
    body: ExplainRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Three practice exercises modeled on the given problem."""
    token = _register_token(body.request_id)
    try:
        exercises = await orchestrator.similar_exercises(body.text, token)
    finally:
        _cancel_tokens.pop(token.request_id, None)
    return SimilarResponse(request_id=token.request_id, exercises=exercises)


# ─── Stored problems ─────────────────────────────────────────────

@router.get("", response_model=ProblemListResponse)
async def list_problems(
    q: str | None = Query(None, max_length=200),
    status_filter: ProblemStatus | None = Query(None, alias="status"),
    source: ProblemSource | None = None,
    favorite: bool | None = None,
    collection_id: UUID | None = None,
    difficulty_min: int | None = Query(None, ge=1, le=5),
    difficulty_max: int | None = Query(None, ge=1, le=5),
    tags: str | None = Query(None, description="Comma-separated; all must match"),
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    sort: Literal[SORT_FIELDS] = "created_at",
    order: Literal["asc", "desc"] = "desc",
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    library: ProblemLibrary = Depends(get_library),
):
    """Saved problems, filtered and paginated. Doubles as the advanced search."""
    filters = ProblemFilters(
        search=q.strip() if q and q.strip() else None,
        status=status_filter,
        source=source.value if source else None,
        favorite=favorite,
        collection_id=CollectionId(collection_id) if collection_id else None,
        difficulty_min=difficulty_min,
        difficulty_max=difficulty_max,
        tags=tuple(normalize_tags(tags.split(","))) if tags else (),
        date_from=date_from,
        date_to=date_to,
        sort=sort,
        descending=order == "desc",
        limit=limit,
        offset=offset,
    )
    records, total = await library.list_problems(filters)
    return ProblemListResponse(
        problems=[problem_response(r) for r in records],
        total=total,
        limit=limit,
        offset=offset,
    )

@router.get("/{problem_id}", response_model=ProblemResponse)
async def get_problem(
    problem_id: UUID,
    problems: SqlProblemStore = Depends(get_problem_store),
):
    record = await problems.get_problem(ProblemId(problem_id))
    if record is None:
        raise ResourceNotFoundError("Problem", str(problem_id))
    return problem_response(record)


@router.patch("/{problem_id}", response_model=ProblemResponse)
async def update_problem(
    problem_id: UUID,
    body: ProblemUpdate,
    library: ProblemLibrary = Depends(get_library),
):
    """Change status, tags or difficulty of a saved problem."""
    record = await library.update_problem(
        ProblemId(problem_id),
        status=body.status.value if body.status else None,
        tags=body.tags,
        difficulty_level=body.difficulty_level,
    )
    return problem_response(record)


@router.put("/{problem_id}/favorite", response_model=FavoriteResponse)
async def toggle_favorite(
    problem_id: UUID,
    library: ProblemLibrary = Depends(get_library),
):
    favorite = await library.toggle_favorite(ProblemId(problem_id))
    return FavoriteResponse(problem_id=problem_id, is_favorite=favorite)


@router.delete("/{problem_id}", response_model=ProblemDeletedResponse)
async def delete_problem(
    problem_id: UUID,
    library: ProblemLibrary = Depends(get_library),
):
    await library.delete_problem(ProblemId(problem_id))
    return ProblemDeletedResponse(deleted=True, problem_id=problem_id)


@router.post("/{problem_id}/collections", response_model=MembershipResponse)
async def add_to_collections(
    problem_id: UUID,
    body: CollectionIdsRequest,
    lifecycle: CollectionLifecycleManager = Depends(get_lifecycle),
):
    collection_ids = await lifecycle.add_problem_to_collections(
        ProblemId(problem_id), [CollectionId(c) for c in body.collection_ids],
    )
    return MembershipResponse(problem_id=problem_id, collection_ids=collection_ids)


@router.put("/{problem_id}/collections", response_model=MembershipResponse)
async def replace_collections(
    problem_id: UUID,
    body: CollectionIdsRequest,
    lifecycle: CollectionLifecycleManager = Depends(get_lifecycle),
):
    """Set the problem's collections; an empty list files it under Favoritos."""
    collection_ids = await lifecycle.replace_problem_collections(
        ProblemId(problem_id), [CollectionId(c) for c in body.collection_ids],
    )
    return MembershipResponse(problem_id=problem_id, collection_ids=collection_ids)


@router.delete(
    "/{problem_id}/collections/{collection_id}",
    response_model=MembershipResponse,
    status_code=status.HTTP_200_OK,
)
async def remove_from_collection(
    problem_id: UUID,
    collection_id: UUID,
    lifecycle: CollectionLifecycleManager = Depends(get_lifecycle),
):
    collection_ids = await lifecycle.remove_problem_from_collection(
        ProblemId(problem_id), CollectionId(collection_id),
    )
    return MembershipResponse(problem_id=problem_id, collection_ids=collection_ids)


# ─── Response builders ───────────────────────────────────────────

def _classification_response(result: ClassificationResult) -> ClassificationResponse:
    return ClassificationResponse(
        category=result.category.value,
        confidence=result.confidence,
        tags=list(result.tags),
        difficulty_level=result.difficulty_level,
        difficulty_description=result.difficulty_description,
        suggested_collection=suggest_collection(result),
    )


def _step_response(step: ExplanationStep) -> StepResponse:
    return StepResponse(
        title=step.title,
        explanation=step.explanation,
        calculation=step.calculation,
        result=step.result,
    )


def _explanation_response(result: ExplanationResult) -> ExplanationResponse:
    explanation = result.explanation
    return ExplanationResponse(
        steps=[_step_response(s) for s in explanation.steps],
        verification=(
            _step_response(explanation.verification)
            if explanation.verification else None
        ),
        final_answer=explanation.final_answer,
        complexity=result.complexity.value,
        was_retried=result.was_retried,
        degraded=result.degraded,
        attempts=len(result.attempts),
        elapsed_ms=result.elapsed_ms,
    )
