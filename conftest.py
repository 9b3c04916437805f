"""Shared fixtures: synthetic images and an in-process recognition backend."""

import threading
import weakref

import numpy as np
import pytest

from domain.errors import ModelLoadError
from ml.classifier import RecognitionBackend, RecognitionModel
from ml.config import NORMALIZE_SIGNED


class FakeRecognitionModel(RecognitionModel):
    """Returns fixed (text, probability) pairs and records the tensors it was given."""
    normalization = NORMALIZE_SIGNED

    def __init__(self, labels, error=None):
        self.labels = list(labels)
        self.error = error
        self.tensor_shapes = []
        self.tensor_refs = []

    def classify(self, tensor, top_k):
        self.tensor_shapes.append(tuple(tensor.shape))
        self.tensor_refs.append(weakref.ref(tensor))
        if self.error is not None:
            raise self.error
        return list(self.labels)


class FakeBackend(RecognitionBackend):
    """
    Recognition backend for tests.

    Args:
        labels: (text, probability) pairs every classify call returns
        failures: Number of initial load() calls that raise ModelLoadError
        gate: Optional threading.Event that load() waits on
    """

    def __init__(self, labels=(), failures=0, gate=None, classify_error=None):
        self.labels = list(labels)
        self.failures = failures
        self.gate = gate
        self.classify_error = classify_error
        self.load_count = 0
        self.model = None

    def load(self, config):
        self.load_count += 1
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.failures > 0:
            self.failures -= 1
            raise ModelLoadError("backend unreachable")
        self.model = FakeRecognitionModel(self.labels, self.classify_error)
        return self.model


@pytest.fixture
def make_backend():
    return FakeBackend


@pytest.fixture
def white_image():
    return np.full((64, 48, 3), 255, dtype=np.uint8)


@pytest.fixture
def black_image():
    return np.zeros((64, 48, 3), dtype=np.uint8)


@pytest.fixture
def striped_image():
    """Dark vertical stripes (0 / 150): opaque and textured."""
    image = np.zeros((64, 64, 3), dtype=np.uint8)
    image[:, ::2] = 150
    return image


@pytest.fixture
def gate():
    return threading.Event()
