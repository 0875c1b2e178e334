"""
config.py
=========
Environment-driven settings for the MedQuiz backend.

Values are read once from the process environment (after ``.env`` has been
loaded by python-dotenv) into an immutable ``Settings`` object that the app
factory hands to every component.  Tests build ``Settings`` directly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

PROJECT_ROOT = Path(__file__).resolve().parent.parent

_DEFAULT_MODEL_PATH = PROJECT_ROOT / "ml_models" / "weights" / "classifier.pt"
_DEFAULT_CLASSES    = ("Kidney", "Lung")


def _clean_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    return value.strip().strip('"').strip("'")


def _int_env(name: str, default: int) -> int:
    raw = _clean_env(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _split_csv(raw: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    # ── Persistence ───────────────────────────────────────────────────────
    mongo_uri: str = "mongodb://localhost:27017/"
    mongo_db_name: str = "test"
    mongo_timeout_ms: int = 5000

    # ── Identity webhooks ─────────────────────────────────────────────────
    webhook_secret: str = ""

    # ── HTTP ──────────────────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 3000
    frontend_url: str = "http://localhost:5173"
    max_upload_bytes: int = 5 * 1024 * 1024

    # ── Classifier ────────────────────────────────────────────────────────
    model_path: Path = _DEFAULT_MODEL_PATH
    model_classes: Tuple[str, ...] = _DEFAULT_CLASSES
    model_input_size: int = 224
    model_output_activation: str = "none"

    # ── Collections ───────────────────────────────────────────────────────
    quiz_collection_prefix: str = "quiz-"

    log_level: str = "INFO"
    extra_cors_origins: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if len(self.model_classes) < 2:
            raise ValueError("MODEL_CLASSES needs at least two labels")
        if self.model_output_activation not in ("none", "softmax"):
            raise ValueError(
                "MODEL_OUTPUT_ACTIVATION must be 'none' or 'softmax', "
                f"got {self.model_output_activation!r}"
            )
        if self.model_input_size <= 0:
            raise ValueError("MODEL_INPUT_SIZE must be positive")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment."""
        model_path = _clean_env("MODEL_PATH")
        classes    = _split_csv(_clean_env("MODEL_CLASSES"))
        return cls(
            mongo_uri               = _clean_env("MONGO_URI", cls.mongo_uri),
            mongo_db_name           = _clean_env("MONGO_DB_NAME", cls.mongo_db_name),
            mongo_timeout_ms        = _int_env("MONGO_TIMEOUT_MS", cls.mongo_timeout_ms),
            webhook_secret          = _clean_env("CLERK_WEBHOOK_SECRET"),
            host                    = _clean_env("HOST", cls.host),
            port                    = _int_env("PORT", cls.port),
            frontend_url            = _clean_env("FRONTEND_URL", cls.frontend_url),
            max_upload_bytes        = _int_env("MAX_UPLOAD_BYTES", cls.max_upload_bytes),
            model_path              = Path(model_path) if model_path else _DEFAULT_MODEL_PATH,
            model_classes           = classes or _DEFAULT_CLASSES,
            model_input_size        = _int_env("MODEL_INPUT_SIZE", cls.model_input_size),
            model_output_activation = _clean_env("MODEL_OUTPUT_ACTIVATION", "none").lower(),
            quiz_collection_prefix  = _clean_env("QUIZ_COLLECTION_PREFIX", cls.quiz_collection_prefix),
            log_level               = _clean_env("LOG_LEVEL", cls.log_level).upper(),
            extra_cors_origins      = _split_csv(_clean_env("CORS_ORIGINS")),
        )

    @property
    def cors_origins(self) -> List[str]:
        origins = [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            self.frontend_url,
            *self.extra_cors_origins,
        ]
        # preserve order, drop duplicates
        return list(dict.fromkeys(o for o in origins if o))
