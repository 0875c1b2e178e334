# backend/schemas/__init__.py
from backend.schemas.response import (
    ErrorResponse,
    HealthResponse,
    PredictResponse,
    WebhookResponse,
)

__all__ = ["ErrorResponse", "HealthResponse", "PredictResponse", "WebhookResponse"]
