"""
main.py
=======
FastAPI application entry point for the MedQuiz backend.

Run locally:
  uvicorn backend.main:app --reload --port 3000
or
  medquiz-backend            (console script, honours HOST / PORT)

The lifespan handler connects to MongoDB and starts loading the scan
classifier in the background.  The server accepts requests immediately;
/predict answers "Model not loaded" until the classifier is READY.
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv  # type: ignore
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend import __version__
from backend.api.health import router as health_router
from backend.api.predict import router as predict_router
from backend.api.questions import router as questions_router
from backend.api.quizzes import fallback_router, router as quizzes_router
from backend.api.webhooks import router as webhooks_router
from backend.config import Settings
from backend.errors import register_error_handlers
from identity.webhooks import UserEventProcessor
from ml_models.predictor import ClassifierHandle, ModelState
from quiz_store.mongo_client import DocumentStore, PersistenceError
from quiz_store.registry import CollectionRegistry

# Load .env from project root (one level above this file's package)
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    resolved = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    # basicConfig is a no-op once handlers exist; the level still applies
    logging.getLogger().setLevel(resolved)


# ---------------------------------------------------------------------------
# Lifespan: startup / shutdown
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect collaborators; do not wait for the classifier."""
    logger.info("MedQuiz backend starting up…")
    store: DocumentStore = app.state.store
    classifier: ClassifierHandle = app.state.classifier

    # 1. Database: report reachability and back the User invariant with an index
    if await asyncio.to_thread(store.ping):
        logger.info("MongoDB connected successfully.")
        try:
            await asyncio.to_thread(store.ensure_indexes)
        except PersistenceError as exc:
            logger.error("MongoDB index setup failed: %s", exc)
    else:
        logger.error("MongoDB unreachable at startup; requests will fail until it is up.")

    # 2. Classifier: load in the background, serve meanwhile
    load_task = None
    if classifier.state is ModelState.NOT_LOADED:
        load_task = classifier.start_background_load()
    app.state.model_load_task = load_task

    yield

    logger.info("MedQuiz backend shutting down.")
    if load_task is not None and not load_task.done():
        # the worker thread cannot be interrupted; wait for it to finish
        await load_task
    store.close()


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    classifier: Optional[ClassifierHandle] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(
        title       = "MedQuiz API",
        description = (
            "Quiz content retrieval, scan image classification and Clerk "
            "user-event webhooks."
        ),
        version     = __version__,
        docs_url    = "/docs",
        redoc_url   = "/redoc",
        lifespan    = lifespan,
    )

    # ── Collaborators ─────────────────────────────────────────────────────
    store = store or DocumentStore.connect(
        settings.mongo_uri, settings.mongo_db_name, settings.mongo_timeout_ms,
    )
    app.state.settings          = settings
    app.state.store             = store
    app.state.registry          = CollectionRegistry(settings.quiz_collection_prefix)
    app.state.classifier        = classifier or ClassifierHandle.from_settings(settings)
    app.state.webhook_processor = UserEventProcessor(store, settings.webhook_secret)

    # ── CORS ──────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins     = settings.cors_origins,
        allow_credentials = True,
        allow_methods     = ["*"],
        allow_headers     = ["*"],
    )

    register_error_handlers(app)

    # ── Routers ───────────────────────────────────────────────────────────
    app.include_router(health_router)
    app.include_router(questions_router)
    app.include_router(quizzes_router)
    app.include_router(predict_router)
    app.include_router(webhooks_router)
    app.include_router(fallback_router)  # catch-all GET /api/{name}, keep last

    return app


def run() -> None:
    import uvicorn

    settings: Settings = app.state.settings
    logger.info("Server running on http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


_settings = Settings.from_env()
configure_logging(_settings.log_level)

app = create_app(_settings)


if __name__ == "__main__":
    run()
