"""ExplicaAI API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ExplicaError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Lifespan initializes logging, database, default collections, then the
      classifier cache and model client on app.state

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Classifier and model client on app.state, not module singletons: tests
      swap them through dependency overrides
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from explicaai import __version__
from explicaai.api.error_handlers import register_error_handlers
from explicaai.api.routes import collections, health, problems, stats
from explicaai.config import get_settings
from explicaai.core.classification_cache import CachedClassifier
from explicaai.infrastructure.anthropic_client import ResilientAnthropicClient
from explicaai.infrastructure.collection_store import SqlCollectionStore
from explicaai.infrastructure.database import init_db
from explicaai.infrastructure.observability import setup_logging
from explicaai.services.collection_lifecycle import CollectionLifecycleManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    async with manager.session() as session:
        lifecycle = CollectionLifecycleManager(SqlCollectionStore(session))
        await lifecycle.seed_default_collections()

    app.state.classifier = CachedClassifier(settings.classification_cache_size)
    app.state.model_client = ResilientAnthropicClient(
        api_key=settings.anthropic_api_key,
        model=settings.model_name,
        max_tokens=settings.model_max_tokens,
        max_retries=settings.model_max_retries,
        base_delay_ms=settings.model_base_delay_ms,
        max_delay_ms=settings.model_max_delay_ms,
        timeout_seconds=settings.model_timeout_seconds,
        send_top_p=settings.model_send_top_p,
    )
    logger.info("ExplicaAI API started")
    yield
    logger.info("ExplicaAI API shutting down")
    await manager.dispose()


app = FastAPI(
    title="ExplicaAI API", version=__version__, lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(health.router)
app.include_router(problems.router)
app.include_router(collections.router)
app.include_router(stats.router)

# Mounted after the API routes so /api/v1/* takes precedence
if os.path.isdir("static"):
    app.mount("/", StaticFiles(directory="static", html=True), name="static")
