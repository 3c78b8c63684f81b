"""Service test fixtures — async DB, seeded collections, mock model, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db, get_classifier and get_model_client are overridden for route tests
      (httpx ASGITransport does not run the app lifespan)
    - db_manager patched so readiness checks see the test engine

Design Decisions:
    - SQLite in-memory with StaticPool: every session shares the one connection,
      so rows committed by a fixture are visible to the routes
    - mock_model is a plain MockModelClient; tests queue outputs on it
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

import explicaai.models  # noqa: F401  (registers tables on Base.metadata)
from explicaai.api.dependencies import get_classifier, get_model_client
from explicaai.api.routes import problems as problems_routes
from explicaai.core.classification_cache import CachedClassifier
from explicaai.db.base import Base
from explicaai.infrastructure.collection_store import SqlCollectionStore
from explicaai.infrastructure.database import get_db, json_dumps, DatabaseSessionManager
from explicaai.infrastructure.problem_store import SqlProblemStore
import explicaai.infrastructure.database as db_module
from explicaai.main import app
from explicaai.services.collection_lifecycle import CollectionLifecycleManager
from explicaai.services.problem_library import ProblemLibrary
from tests.services.factories import make_draft
from tests.services.mock_model_client import MockModelClient


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        json_serializer=json_dumps,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def lifecycle(test_db):
    return CollectionLifecycleManager(SqlCollectionStore(test_db))


@pytest.fixture
async def defaults(lifecycle):
    """Seed Favoritos and the category collections; returns them by name."""
    await lifecycle.seed_default_collections()
    return {record.name: record for record in await lifecycle.list_collections()}


@pytest.fixture
def make_problem(test_db, lifecycle):
    """Insert a problem filed into the given collections (default if none).

    Keyword arguments override ProblemDraft fields (tags, difficulty_level, ...).
    """
    problems = SqlProblemStore(test_db)

    async def _make(*collection_ids, text="Calcule: 2 + 2", **fields):
        problem_id, _ = await lifecycle.file_problem(
            lambda: problems.insert_problem(make_draft(text, **fields)),
            collection_ids=collection_ids,
        )
        return problem_id

    return _make


@pytest.fixture
def library(test_db):
    return ProblemLibrary(SqlProblemStore(test_db), SqlCollectionStore(test_db))


@pytest.fixture
def mock_model():
    return MockModelClient()


@pytest.fixture
async def client(test_engine, test_session_factory, mock_model):
    """FastAPI test client with DB, classifier and model client overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    classifier = CachedClassifier()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_classifier] = lambda: classifier
    app.dependency_overrides[get_model_client] = lambda: mock_model

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    problems_routes._cancel_tokens.clear()
    db_module.db_manager = original_manager
