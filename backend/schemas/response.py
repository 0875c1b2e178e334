"""
schemas/response.py
===================
Pydantic v2 models for every JSON body the gateway returns.

Quiz and question documents are free-form and are returned as plain lists
of dicts; everything the service shapes itself is modelled here.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Optional

from pydantic import BaseModel, Field


def _utc_now() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


class PredictResponse(BaseModel):
    label: str
    confidence: str = Field(..., pattern=r"^\d{1,3}\.\d{2}%$", examples=["97.31%"])


class WebhookResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str = "ok"
    model_state: str
    model_loaded: bool
    model_error: Optional[str] = None
    database_ready: bool
    api_version: str


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    timestamp: str = Field(default_factory=_utc_now)
