"""
api/questions.py
================
GET /api/questions — every document in the ``questions`` collection.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, status

from backend.dependencies import get_store
from backend.errors import ServiceError
from quiz_store.mongo_client import DocumentStore, PersistenceError
from quiz_store.registry import QUESTIONS_COLLECTION

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/questions")
async def list_questions(store: DocumentStore = Depends(get_store)):
    try:
        return await asyncio.to_thread(store.find_all, QUESTIONS_COLLECTION)
    except PersistenceError as exc:
        logger.error("Error fetching questions: %s", exc)
        raise ServiceError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Error fetching questions", str(exc),
        )
