"""
dependencies.py
===============
FastAPI dependencies that hand routers the collaborators owned by the app.

The app factory stores each collaborator on ``app.state``; nothing here
creates objects, so tests can inject fakes through ``create_app``.
"""

from __future__ import annotations

from fastapi import Request

from backend.config import Settings
from identity.webhooks import UserEventProcessor
from ml_models.predictor import ClassifierHandle
from quiz_store.mongo_client import DocumentStore
from quiz_store.registry import CollectionRegistry


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_registry(request: Request) -> CollectionRegistry:
    return request.app.state.registry


def get_classifier(request: Request) -> ClassifierHandle:
    return request.app.state.classifier


def get_webhook_processor(request: Request) -> UserEventProcessor:
    return request.app.state.webhook_processor
