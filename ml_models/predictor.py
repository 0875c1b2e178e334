"""
predictor.py
============
Owns the pre-trained scan classifier and exposes ``predict()`` for the
/predict endpoint.

The model is a TorchScript artifact (weights + topology in one file) loaded
read-only with ``torch.jit.load``.  Loading happens once, in the background,
after the server has started; the handle moves through

    NOT_LOADED → LOADING → READY
                        ↘ FAILED

and never back.  Requests that arrive before READY are rejected with
``ModelNotReadyError`` instead of being queued.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

import torch

from ml_models.image_encoder import encode_image

logger = logging.getLogger(__name__)

_SCORE_TOLERANCE = 1e-4  # float slack when checking scores lie in [0, 1]


class ModelState(str, Enum):
    NOT_LOADED = "not_loaded"
    LOADING    = "loading"
    READY      = "ready"
    FAILED     = "failed"


class ModelNotReadyError(RuntimeError):
    """The classifier has not finished loading (or failed to load)."""


class PredictionError(RuntimeError):
    """Decoding or inference failed for a single request."""


@dataclass(frozen=True)
class Prediction:
    label: str
    probability: float  # in [0, 1]

    @property
    def confidence(self) -> str:
        """Probability as a two-decimal percentage string, e.g. ``"97.31%"``."""
        return f"{self.probability * 100:.2f}%"


# ---------------------------------------------------------------------------
# Handle
# ---------------------------------------------------------------------------

class ClassifierHandle:
    """
    Explicitly owned reference to the loaded classifier.

    One instance is created by the app factory and injected into the
    prediction router; there is no module-level model global.
    """

    def __init__(
        self,
        model_path: Path,
        class_labels: Sequence[str],
        input_size: int = 224,
        output_activation: str = "none",
    ):
        self.model_path        = Path(model_path)
        self.class_labels      = tuple(class_labels)
        self.input_size        = input_size
        self.output_activation = output_activation

        self._model: Optional[torch.nn.Module] = None
        self._state = ModelState.NOT_LOADED
        self._error: Optional[str] = None
        self._device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings) -> "ClassifierHandle":
        return cls(
            model_path        = settings.model_path,
            class_labels      = settings.model_classes,
            input_size        = settings.model_input_size,
            output_activation = settings.model_output_activation,
        )

    # ── State ─────────────────────────────────────────────────────────────

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ModelState.READY

    @property
    def error(self) -> Optional[str]:
        return self._error

    # ── Loading ───────────────────────────────────────────────────────────

    def load(self) -> ModelState:
        """
        Load the TorchScript artifact from disk.  Runs at most once; later
        calls return the current state without touching the file again.
        """
        with self._lock:
            if self._state is not ModelState.NOT_LOADED:
                return self._state
            self._state = ModelState.LOADING

        logger.info("Loading classifier from %s …", self.model_path)
        try:
            if not self.model_path.exists():
                raise FileNotFoundError(f"no model artifact at {self.model_path}")
            model = torch.jit.load(str(self.model_path), map_location=self._device)
            model.eval()
        except Exception as exc:
            self._error = str(exc)
            self._state = ModelState.FAILED
            logger.error("Error loading classifier: %s", exc, exc_info=True)
            return self._state

        self._model = model
        self._state = ModelState.READY
        logger.info(
            "Classifier loaded (%d classes: %s) on %s.",
            len(self.class_labels), ", ".join(self.class_labels), self._device,
        )
        return self._state

    def start_background_load(self) -> "asyncio.Task[ModelState]":
        """Schedule ``load()`` on a worker thread without awaiting it."""
        return asyncio.create_task(asyncio.to_thread(self.load))

    def attach(self, model: torch.nn.Module) -> None:
        """Install an already-built model and mark the handle READY."""
        model.eval()
        with self._lock:
            self._model = model.to(self._device)
            self._state = ModelState.READY
            self._error = None

    # ── Prediction ────────────────────────────────────────────────────────

    def predict(self, image_bytes: bytes) -> Prediction:
        """
        Classify one image.

        Raises
        ------
        ModelNotReadyError  if the handle is not READY.
        PredictionError     on decode failure or malformed model output.
        """
        if not self.is_ready or self._model is None:
            raise ModelNotReadyError(f"model state is {self._state.value}")

        try:
            tensor = encode_image(image_bytes, self.input_size).to(self._device)
            with torch.no_grad():
                output = self._model(tensor)
            scores = output.detach().float().reshape(-1).cpu()
        except Exception as exc:
            raise PredictionError(str(exc)) from exc

        if scores.numel() != len(self.class_labels):
            raise PredictionError(
                f"model returned {scores.numel()} scores for "
                f"{len(self.class_labels)} classes"
            )

        if self.output_activation == "softmax":
            scores = torch.softmax(scores, dim=0)

        pred_idx    = int(scores.argmax().item())
        probability = float(scores[pred_idx].item())
        if not -_SCORE_TOLERANCE <= probability <= 1.0 + _SCORE_TOLERANCE:
            raise PredictionError(
                f"score {probability:.4f} outside [0, 1]; "
                "set MODEL_OUTPUT_ACTIVATION=softmax for logit outputs"
            )
        probability = min(max(probability, 0.0), 1.0)

        logger.debug(
            "Raw scores: %s → %s (%.4f)",
            [round(s, 4) for s in scores.tolist()],
            self.class_labels[pred_idx], probability,
        )
        return Prediction(label=self.class_labels[pred_idx], probability=probability)
