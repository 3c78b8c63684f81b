"""Problem Intake — classify, explain and optionally file a problem.

Invariants:
    - Classification never fails and runs before any model call
    - Nothing is persisted unless auto_save is set and the explanation finished
    - A saved problem lands in the given collections, else the suggested one,
      else the default collection
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from explicaai.core.cancellation import CancelToken
from explicaai.core.classification_cache import CachedClassifier
from explicaai.core.classify_problem import ClassificationResult, suggest_collection
from explicaai.core.domain_types import CollectionId, ProblemId
from explicaai.core.explanation_types import ExplanationResult
from explicaai.core.problem_records import draft_from_result
from explicaai.core.repository_protocols import ProblemStore
from explicaai.services.collection_lifecycle import CollectionLifecycleManager
from explicaai.services.generation_orchestrator import GenerationOrchestrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntakeResult:
    classification: ClassificationResult
    result: ExplanationResult
    problem_id: ProblemId | None = None
    collection_ids: tuple[CollectionId, ...] = field(default_factory=tuple)


class ProblemIntake:
    """Composes classifier, orchestrator and lifecycle for one request."""

    def __init__(
        self,
        classifier: CachedClassifier,
        orchestrator: GenerationOrchestrator,
        lifecycle: CollectionLifecycleManager,
        problems: ProblemStore,
    ) -> None:
        self.classifier = classifier
        self.orchestrator = orchestrator
        self.lifecycle = lifecycle
        self.problems = problems

    async def solve(
        self,
        text: str,
        cancel_token: CancelToken,
        auto_save: bool = False,
        collection_ids: Sequence[CollectionId] = (),
    ) -> IntakeResult:
        classification = self.classifier.classify(text)
        logger.info(
            "Problem classified",
            extra={
                "request_id": cancel_token.request_id,
                "category": classification.category.value,
            },
        )
        result = await self.orchestrator.explain(text, cancel_token)
        if not auto_save:
            return IntakeResult(classification=classification, result=result)

        draft = draft_from_result(text, classification, result)
        problem_id, targets = await self.lifecycle.file_problem(
            lambda: self.problems.insert_problem(draft),
            collection_ids=collection_ids,
            suggested_name=suggest_collection(classification),
        )
        return IntakeResult(
            classification=classification,
            result=result,
            problem_id=problem_id,
            collection_ids=tuple(targets),
        )
