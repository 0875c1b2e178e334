"""
api/health.py
=============
GET /api/health — liveness and readiness probe for the MedQuiz backend.
"""

import asyncio

from fastapi import APIRouter, Depends

from backend import __version__
from backend.dependencies import get_classifier, get_store
from backend.schemas.response import HealthResponse
from ml_models.predictor import ClassifierHandle
from quiz_store.mongo_client import DocumentStore

router = APIRouter()


@router.get("/api/health", response_model=HealthResponse)
async def health_check(
    classifier: ClassifierHandle = Depends(get_classifier),
    store: DocumentStore = Depends(get_store),
):
    """Return service status and component readiness flags."""
    database_ready = await asyncio.to_thread(store.ping)

    return HealthResponse(
        model_state    = classifier.state.value,
        model_loaded   = classifier.is_ready,
        model_error    = classifier.error,
        database_ready = database_ready,
        api_version    = __version__,
    )
