"""
api/predict.py
==============
POST /predict
-------------
Accepts a multipart/form-data request with one field:
  • image : UploadFile (any Pillow-readable format, max MAX_UPLOAD_BYTES)

Checks, in order:
  1. Classifier handle is READY             else 500 "Model not loaded"
  2. A non-empty file was uploaded          else 400 "No image uploaded"
  3. Upload is within the size limit        else 413
  4. Decode → resize → scale → classify     any failure 500 "Prediction failed"

Returns ``{"label": "Kidney", "confidence": "97.31%"}``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, File, UploadFile, status
from starlette.datastructures import UploadFile as StarletteUploadFile

from backend.config import Settings
from backend.dependencies import get_classifier, get_settings
from backend.errors import ServiceError
from backend.schemas.response import PredictResponse
from ml_models.predictor import ClassifierHandle, ModelNotReadyError, PredictionError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/predict", response_model=PredictResponse)
async def predict(
    image: Union[UploadFile, str, None] = File(None, description="Image to classify"),
    classifier: ClassifierHandle = Depends(get_classifier),
    settings: Settings = Depends(get_settings),
):
    """Classify an uploaded scan image."""

    if not classifier.is_ready:
        logger.warning("Prediction requested while model is %s.", classifier.state.value)
        raise ServiceError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Model not loaded")

    # a plain-text form field named "image" counts as no upload
    if not isinstance(image, StarletteUploadFile):
        raise ServiceError(status.HTTP_400_BAD_REQUEST, "No image uploaded")

    content = await image.read()
    if not content:
        raise ServiceError(status.HTTP_400_BAD_REQUEST, "No image uploaded")

    if len(content) > settings.max_upload_bytes:
        raise ServiceError(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            "Image too large",
            f"{len(content) / 1e6:.2f} MB uploaded, limit is "
            f"{settings.max_upload_bytes / 1e6:.2f} MB.",
        )

    try:
        prediction = await asyncio.to_thread(classifier.predict, content)
    except ModelNotReadyError:
        raise ServiceError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Model not loaded")
    except PredictionError as exc:
        logger.error("Error in prediction: %s", exc, exc_info=True)
        raise ServiceError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Prediction failed", str(exc))

    logger.info(
        "Predicted %s (%s) for %s.",
        prediction.label, prediction.confidence, image.filename or "<unnamed upload>",
    )
    return PredictResponse(label=prediction.label, confidence=prediction.confidence)
