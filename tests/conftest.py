"""Shared fixtures: in-memory MongoDB, a tiny TorchScript classifier, signed webhooks."""

import base64
import io
import json
from datetime import datetime, timezone

import mongomock
import pytest
import torch
import torch.nn as nn
from fastapi.testclient import TestClient
from PIL import Image
from svix.webhooks import Webhook

from backend.config import Settings
from backend.main import create_app
from ml_models.predictor import ClassifierHandle
from quiz_store.mongo_client import DocumentStore

WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"medquiz-test-secret-0123456789ab").decode()
CLASSES = ("Kidney", "Lung")


class RedVsBlue(nn.Module):
    """Scores class 0 by mean red, class 1 by mean blue; softmax output."""

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        red = x[:, 0].mean(dim=[1, 2])
        blue = x[:, 2].mean(dim=[1, 2])
        return torch.softmax(torch.stack([red, blue], dim=1) * 4.0, dim=1)


class RawLogits(nn.Module):
    def forward(self, x: torch.Tensor) -> torch.Tensor:
        red = x[:, 0].mean(dim=[1, 2])
        blue = x[:, 2].mean(dim=[1, 2])
        return torch.stack([red, blue], dim=1) * 10.0


class ThreeWay(nn.Module):
    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return torch.full((x.shape[0], 3), 1.0 / 3.0)


def save_scripted(module: nn.Module, path) -> None:
    traced = torch.jit.trace(module.eval(), torch.zeros(1, 3, 8, 8))
    traced.save(str(path))


def make_image(color=(255, 0, 0), size=(32, 32), mode="RGB", fmt="PNG") -> bytes:
    img = Image.new(mode, size, color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def signed_delivery(event: dict, msg_id: str = "msg_test_1", secret: str = WEBHOOK_SECRET):
    """Return (body, headers) for *event* signed the way Svix signs deliveries."""
    body = json.dumps(event)
    timestamp = datetime.now(timezone.utc)
    signature = Webhook(secret).sign(msg_id, timestamp, body)
    headers = {
        "svix-id":        msg_id,
        "svix-timestamp": str(int(timestamp.timestamp())),
        "svix-signature": signature,
        "content-type":   "application/json",
    }
    return body, headers


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "classifier.pt"
    save_scripted(RedVsBlue(), path)
    return path


@pytest.fixture
def settings(model_file):
    return Settings(
        mongo_uri      = "mongodb://unused/",
        webhook_secret = WEBHOOK_SECRET,
        model_path     = model_file,
        model_classes  = CLASSES,
        model_input_size = 16,
    )


@pytest.fixture
def db():
    return mongomock.MongoClient().get_database("test")


@pytest.fixture
def store(db):
    store = DocumentStore(db)
    store.ensure_indexes()
    return store


@pytest.fixture
def classifier(settings):
    handle = ClassifierHandle.from_settings(settings)
    handle.load()
    return handle


@pytest.fixture
def client(settings, store, classifier):
    app = create_app(settings, store=store, classifier=classifier)
    with TestClient(app) as test_client:
        yield test_client
