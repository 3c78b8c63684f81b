"""Route Dependencies — build per-request services from app.state and the DB session.

Invariants:
    - Long-lived collaborators (classifier cache, model client) live on app.state,
      created in the lifespan; services are built fresh for every request
    - All stores of one request share the same AsyncSession (get_db is cached
      per request by FastAPI), so one transaction can span them

Design Decisions:
    - Plain Depends() factories over a container: tests override get_model_client
      and get_classifier the same way they override get_db
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from explicaai.config import get_settings
from explicaai.core.classification_cache import CachedClassifier
from explicaai.core.repository_protocols import ModelClient
from explicaai.infrastructure.collection_store import SqlCollectionStore
from explicaai.infrastructure.database import get_db
from explicaai.infrastructure.problem_store import SqlProblemStore
from explicaai.infrastructure.stats_store import SqlStatsStore
from explicaai.services.collection_lifecycle import CollectionLifecycleManager
from explicaai.services.generation_orchestrator import GenerationOrchestrator
from explicaai.services.problem_intake import ProblemIntake
from explicaai.services.problem_library import ProblemLibrary
from explicaai.services.study_stats import StudyStatsService


def get_classifier(request: Request) -> CachedClassifier:
    return request.app.state.classifier


def get_model_client(request: Request) -> ModelClient:
    return request.app.state.model_client


def get_orchestrator(
    client: ModelClient = Depends(get_model_client),
) -> GenerationOrchestrator:
    return GenerationOrchestrator(client, get_settings().tier_options())


def get_lifecycle(
    db: AsyncSession = Depends(get_db),
) -> CollectionLifecycleManager:
    return CollectionLifecycleManager(SqlCollectionStore(db))


def get_problem_store(db: AsyncSession = Depends(get_db)) -> SqlProblemStore:
    return SqlProblemStore(db)


def get_intake(
    classifier: CachedClassifier = Depends(get_classifier),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    lifecycle: CollectionLifecycleManager = Depends(get_lifecycle),
    problems: SqlProblemStore = Depends(get_problem_store),
) -> ProblemIntake:
    return ProblemIntake(classifier, orchestrator, lifecycle, problems)


def get_library(
    db: AsyncSession = Depends(get_db),
) -> ProblemLibrary:
    return ProblemLibrary(SqlProblemStore(db), SqlCollectionStore(db))


def get_study_stats(db: AsyncSession = Depends(get_db)) -> StudyStatsService:
    return StudyStatsService(SqlStatsStore(db))
