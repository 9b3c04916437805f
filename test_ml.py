"""Unit tests for normalization, recognition backends and recycling guidance."""

import gc
import weakref

import numpy as np
import pytest
import torch
import torch.nn as nn

from domain.errors import InferenceError, InvalidImageError, ModelLoadError
from domain.models import PlasticCategory, RecognitionLabel
from ml import classifier as classifier_module
from ml.action_guidance import get_action_guidance, get_recycling_verdict
from ml.classifier import (
    TorchvisionBackend, TorchvisionRecognitionModel, run_inference, top_k_labels
)
from ml.config import (
    EngineConfig, MEAN, STD, NORMALIZE_IMAGENET, NORMALIZE_SIGNED, NORMALIZE_UNIT
)
from ml.preprocess import normalized_tensor, preprocess_rgb


# Image normalizer

def test_tensor_shape_and_dtype():
    image = np.random.default_rng(0).integers(0, 256, (37, 91, 3), dtype=np.uint8)
    tensor = preprocess_rgb(image)
    assert tuple(tensor.shape) == (1, 3, 224, 224)
    assert tensor.dtype == torch.float32


def test_custom_size():
    tensor = preprocess_rgb(np.zeros((10, 10, 3), dtype=np.uint8), size=96)
    assert tuple(tensor.shape) == (1, 3, 96, 96)


def test_signed_range(white_image, black_image):
    assert torch.all(preprocess_rgb(white_image, NORMALIZE_SIGNED) == 1.0)
    assert torch.all(preprocess_rgb(black_image, NORMALIZE_SIGNED) == -1.0)


def test_unit_range(white_image, black_image):
    assert torch.all(preprocess_rgb(white_image, NORMALIZE_UNIT) == 1.0)
    assert torch.all(preprocess_rgb(black_image, NORMALIZE_UNIT) == 0.0)


def test_imagenet_standardisation(white_image):
    tensor = preprocess_rgb(white_image, NORMALIZE_IMAGENET)
    for c in range(3):
        expected = (1.0 - MEAN[c]) / STD[c]
        assert torch.allclose(tensor[0, c], torch.full((224, 224), expected), atol=1e-5)


def test_preprocess_is_deterministic():
    """Identical input gives a bit-identical tensor."""
    image = np.random.default_rng(7).integers(0, 256, (120, 80, 3), dtype=np.uint8)
    assert torch.equal(preprocess_rgb(image), preprocess_rgb(image.copy()))


def test_nearest_neighbour_keeps_source_values():
    image = np.array([[[0, 0, 0], [255, 255, 255]],
                      [[51, 51, 51], [102, 102, 102]]], dtype=np.uint8)
    tensor = preprocess_rgb(image, NORMALIZE_UNIT)
    expected = (np.array([0, 255, 51, 102], dtype=np.float32) / 255.0).tolist()
    assert set(torch.unique(tensor).tolist()) == set(expected), "No interpolated values"


def test_rgba_and_gray_inputs():
    rgba = np.zeros((20, 20, 4), dtype=np.uint8)
    gray = np.zeros((20, 20), dtype=np.uint8)
    single = np.zeros((20, 20, 1), dtype=np.uint8)
    for image in (rgba, gray, single):
        assert tuple(preprocess_rgb(image).shape) == (1, 3, 224, 224)


@pytest.mark.parametrize("bad", [
    np.zeros((0, 5, 3), dtype=np.uint8),
    np.zeros((5, 5, 3), dtype=np.float32),
    np.zeros((5, 5, 2), dtype=np.uint8),
    "not an image",
])
def test_invalid_images_raise(bad):
    with pytest.raises(InvalidImageError):
        preprocess_rgb(bad)


def test_unknown_mode_rejected(white_image):
    with pytest.raises(ValueError):
        preprocess_rgb(white_image, mode="bogus")


def test_normalized_tensor_scope(white_image):
    with normalized_tensor(white_image, NORMALIZE_UNIT, 32) as scope:
        assert tuple(scope.tensor.shape) == (1, 3, 32, 32)
        assert not scope.released

    assert scope.released
    with pytest.raises(RuntimeError, match="released"):
        scope.tensor


def test_normalized_tensor_collected_after_scope(white_image):
    with normalized_tensor(white_image) as scope:
        ref = weakref.ref(scope.tensor)
    gc.collect()

    assert ref() is None, "tensor outlived its scope"


def test_normalized_tensor_collected_after_exception(white_image):
    with pytest.raises(RuntimeError, match="abandoned"):
        with normalized_tensor(white_image) as scope:
            ref = weakref.ref(scope.tensor)
            raise RuntimeError("caller abandoned classification")
    gc.collect()

    assert scope.released
    assert ref() is None, "tensor outlived its scope after an exception"


# Recognition backend

def test_top_k_labels_orders_by_probability():
    probs = torch.tensor([0.1, 0.6, 0.3])
    labels = top_k_labels(probs, ["a", "b", "c"], 2)
    assert [text for text, _ in labels] == ["b", "c"]
    assert labels[0][1] == pytest.approx(0.6)


def test_top_k_larger_than_vocabulary():
    labels = top_k_labels(torch.tensor([0.2, 0.8]), ["x", "y"], 5)
    assert [text for text, _ in labels] == ["y", "x"]


def test_torchvision_model_classify():
    net = nn.Sequential(nn.AdaptiveAvgPool2d(1), nn.Flatten(), nn.Linear(3, 4))
    model = TorchvisionRecognitionModel(net.eval(), ["w", "x", "y", "z"], torch.device("cpu"))

    labels = model.classify(preprocess_rgb(np.full((8, 8, 3), 90, dtype=np.uint8)), 3)

    assert len(labels) == 3
    probs = [p for _, p in labels]
    assert probs == sorted(probs, reverse=True)
    assert sum(probs) <= 1.0 + 1e-6


def test_torchvision_backend_wraps_load_failure(monkeypatch):
    def offline(name):
        raise OSError("no network")

    monkeypatch.setattr(classifier_module.models, "get_model_weights", offline)

    with pytest.raises(ModelLoadError, match="no network"):
        TorchvisionBackend().load(EngineConfig(device="cpu"))


def test_run_inference_sorts_and_truncates():
    class Unordered:
        def classify(self, tensor, top_k):
            return [RecognitionLabel(str(i), p) for i, p in enumerate([0.1, 0.5, 0.2, 0.9])]

    labels = run_inference(Unordered(), torch.zeros(1, 3, 4, 4), 3)
    assert [l.text for l in labels] == ["3", "1", "2"]


def test_run_inference_wraps_errors():
    class Broken:
        def classify(self, tensor, top_k):
            raise RuntimeError("CUDA out of memory")

    with pytest.raises(InferenceError, match="CUDA out of memory"):
        run_inference(Broken(), torch.zeros(1, 3, 4, 4), 5)


def test_run_inference_clamps_probabilities():
    """Softmax rounding a hair outside [0, 1] is clamped, not treated as a failure."""
    class Rounding:
        def classify(self, tensor, top_k):
            return [("cap", -1e-9), RecognitionLabel("lid", 0.4), ("bottle", 1.0000001)]

    labels = run_inference(Rounding(), torch.zeros(1, 3, 4, 4), 5)

    assert [(l.text, l.probability) for l in labels] == [("bottle", 1.0), ("lid", 0.4), ("cap", 0.0)]
    assert all(isinstance(l, RecognitionLabel) for l in labels)


def test_run_inference_rejects_malformed_output():
    class Garbled:
        def classify(self, tensor, top_k):
            return [("bottle",)]

    with pytest.raises(InferenceError):
        run_inference(Garbled(), torch.zeros(1, 3, 4, 4), 5)


def test_label_probability_validated():
    with pytest.raises(ValueError):
        RecognitionLabel("bottle", 1.2)


# Configuration

@pytest.mark.parametrize("kwargs", [
    {"image_size": 0},
    {"top_k": 0},
    {"confidence_threshold": 0.0},
    {"confidence_threshold": 1.5},
])
def test_engine_config_validation(kwargs):
    with pytest.raises(ValueError):
        EngineConfig(**kwargs)


# Recycling guidance

@pytest.mark.parametrize("category", list(PlasticCategory))
def test_every_category_has_guidance(category):
    verdict = get_recycling_verdict(category)
    assert verdict.category is category
    assert len(verdict.suggestions) >= 1


def test_recyclable_flags():
    assert get_recycling_verdict(PlasticCategory.PET).recyclable
    assert get_recycling_verdict(PlasticCategory.PET).resin_code == 1
    assert not get_recycling_verdict(PlasticCategory.PVC).recyclable
    unknown = get_recycling_verdict(PlasticCategory.UNKNOWN)
    assert not unknown.recyclable
    assert unknown.resin_code is None


def test_guidance_returns_a_copy():
    suggestions = get_action_guidance(PlasticCategory.PET)
    suggestions.append("mutated")
    assert "mutated" not in get_action_guidance(PlasticCategory.PET)


def test_verdict_to_dict():
    data = get_recycling_verdict(PlasticCategory.HDPE).to_dict()
    assert data["category"] == "HDPE"
    assert data["resin_code"] == 2
    assert data["recyclable"] is True
