"""ClassifierHandle and image encoding, without the HTTP layer."""

import pytest
import torch

from ml_models.image_encoder import ImageDecodeError, encode_image
from ml_models.predictor import (
    ClassifierHandle,
    ModelNotReadyError,
    ModelState,
    Prediction,
    PredictionError,
)
from tests.conftest import CLASSES, RawLogits, RedVsBlue, ThreeWay, make_image, save_scripted


class TestImageEncoder:

    def test_shape_and_range(self):
        tensor = encode_image(make_image((255, 128, 0), size=(50, 30)), size=24)

        assert tensor.shape == (1, 3, 24, 24)
        assert tensor.dtype == torch.float32
        assert tensor.min() >= 0.0 and tensor.max() <= 1.0
        assert tensor[0, 0].mean().item() == pytest.approx(1.0)
        assert tensor[0, 1].mean().item() == pytest.approx(128 / 255, abs=1e-3)
        assert tensor[0, 2].mean().item() == pytest.approx(0.0)

    def test_greyscale_is_expanded_to_three_channels(self):
        tensor = encode_image(make_image(200, mode="L"), size=8)

        assert tensor.shape == (1, 3, 8, 8)

    def test_garbage_bytes_raise(self):
        with pytest.raises(ImageDecodeError):
            encode_image(b"\x89PNG not really")

    def test_empty_bytes_raise(self):
        with pytest.raises(ImageDecodeError):
            encode_image(b"")


class TestClassifierHandle:

    def test_lifecycle(self, model_file):
        handle = ClassifierHandle(model_file, CLASSES, input_size=8)
        assert handle.state is ModelState.NOT_LOADED
        assert not handle.is_ready

        assert handle.load() is ModelState.READY
        assert handle.is_ready
        # a second load is a no-op
        assert handle.load() is ModelState.READY

    def test_missing_artifact_fails_once(self, tmp_path):
        handle = ClassifierHandle(tmp_path / "nope.pt", CLASSES)

        assert handle.load() is ModelState.FAILED
        assert "nope.pt" in handle.error
        assert handle.load() is ModelState.FAILED

    def test_corrupt_artifact_fails(self, tmp_path):
        path = tmp_path / "corrupt.pt"
        path.write_bytes(b"not a torchscript archive")
        handle = ClassifierHandle(path, CLASSES)

        assert handle.load() is ModelState.FAILED

    def test_predict_before_load_raises(self, model_file):
        handle = ClassifierHandle(model_file, CLASSES)

        with pytest.raises(ModelNotReadyError):
            handle.predict(make_image())

    def test_predict(self, classifier):
        prediction = classifier.predict(make_image((0, 0, 255)))

        assert prediction.label == "Lung"
        assert prediction.confidence == "98.20%"

    def test_attach_in_memory_model(self):
        handle = ClassifierHandle("unused.pt", CLASSES, input_size=8)
        handle.attach(RedVsBlue())

        assert handle.state is ModelState.READY
        assert handle.predict(make_image((255, 0, 0))).label == "Kidney"

    def test_logits_need_softmax(self, tmp_path):
        path = tmp_path / "logits.pt"
        save_scripted(RawLogits(), path)

        raw = ClassifierHandle(path, CLASSES, input_size=8)
        raw.load()
        with pytest.raises(PredictionError, match="outside"):
            raw.predict(make_image((255, 0, 0)))

        soft = ClassifierHandle(path, CLASSES, input_size=8, output_activation="softmax")
        soft.load()
        prediction = soft.predict(make_image((255, 0, 0)))
        assert prediction.label == "Kidney"
        assert prediction.confidence == "100.00%"

    def test_output_width_must_match_classes(self, tmp_path):
        path = tmp_path / "three.pt"
        save_scripted(ThreeWay(), path)
        handle = ClassifierHandle(path, CLASSES, input_size=8)
        handle.load()

        with pytest.raises(PredictionError, match="3 scores for 2 classes"):
            handle.predict(make_image())

    def test_undecodable_upload_is_prediction_error(self, classifier):
        with pytest.raises(PredictionError):
            classifier.predict(b"plain text")


@pytest.mark.parametrize("probability, expected", [
    (0.0, "0.00%"),
    (0.5, "50.00%"),
    (0.98765, "98.77%"),
    (1.0, "100.00%"),
])
def test_confidence_formatting(probability, expected):
    assert Prediction("Kidney", probability).confidence == expected
