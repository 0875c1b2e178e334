"""
api/quizzes.py
==============
Quiz metadata and per-quiz question collections.

  GET /api/quizzes          metadata documents from ``quizzes``
  GET /api/quizzes/{name}   documents of quiz collection ``name``
  GET /api/{name}           fallback for ``name`` with an existence check

Only names accepted by ``CollectionRegistry`` are ever read.  The
``/api/quizzes/{name}`` route does not check that the collection exists, so
an unknown quiz yields ``[]``; the fallback route looks the name up in the
database's collection list first and answers 404 when it is absent.

``fallback_router`` must be included after every other ``/api/*`` router.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, status

from backend.dependencies import get_registry, get_store
from backend.errors import ServiceError
from quiz_store.mongo_client import DocumentStore, PersistenceError
from quiz_store.registry import QUIZZES_COLLECTION, CollectionRegistry

logger = logging.getLogger(__name__)

router = APIRouter()
fallback_router = APIRouter()


def _not_found(name: str) -> ServiceError:
    return ServiceError(status.HTTP_404_NOT_FOUND, f"Collection {name} not found")


@router.get("/api/quizzes")
async def list_quizzes(store: DocumentStore = Depends(get_store)):
    try:
        return await asyncio.to_thread(store.find_all, QUIZZES_COLLECTION)
    except PersistenceError as exc:
        logger.error("Error fetching quizzes: %s", exc)
        raise ServiceError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Error fetching quizzes", str(exc),
        )


@router.get("/api/quizzes/{collection_name}")
async def get_quiz_questions(
    collection_name: str,
    store: DocumentStore = Depends(get_store),
    registry: CollectionRegistry = Depends(get_registry),
):
    if not registry.is_allowed(collection_name):
        logger.warning("Rejected quiz collection name '%s'.", collection_name)
        raise _not_found(collection_name)

    try:
        return await asyncio.to_thread(store.find_all, collection_name)
    except PersistenceError as exc:
        logger.error("Error fetching quiz questions from %s: %s", collection_name, exc)
        raise ServiceError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Error fetching quiz questions", str(exc),
        )


@fallback_router.get("/api/{collection_name}")
async def get_collection(
    collection_name: str,
    store: DocumentStore = Depends(get_store),
    registry: CollectionRegistry = Depends(get_registry),
):
    if not registry.is_allowed(collection_name):
        raise _not_found(collection_name)

    try:
        exists = await asyncio.to_thread(store.collection_exists, collection_name)
        if not exists:
            raise _not_found(collection_name)
        return await asyncio.to_thread(store.find_all, collection_name)
    except PersistenceError as exc:
        logger.error("Error fetching data from collection %s: %s", collection_name, exc)
        raise ServiceError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Error fetching collection data", str(exc),
        )
