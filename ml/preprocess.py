from contextlib import contextmanager

import cv2
import numpy as np
import torch

from domain.errors import InvalidImageError
from ml.config import (
    IMG_SIZE, MEAN, STD,
    NORMALIZE_SIGNED, NORMALIZE_UNIT, NORMALIZE_IMAGENET, NORMALIZATION_MODES,
)


def to_rgb(image: np.ndarray) -> np.ndarray:
    """Validate a decoded image and return it as HxWx3 uint8 RGB."""
    if not isinstance(image, np.ndarray):
        raise InvalidImageError(f"Expected a numpy array, got {type(image).__name__}")
    if image.size == 0:
        raise InvalidImageError("Image has zero size")
    if image.dtype != np.uint8:
        raise InvalidImageError(f"Expected uint8 pixels, got {image.dtype}")

    if image.ndim == 2 or (image.ndim == 3 and image.shape[2] == 1):
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2RGB)
    if image.ndim == 3 and image.shape[2] == 3:
        return image
    raise InvalidImageError(f"Unsupported image shape: {image.shape}")


def preprocess_rgb(image: np.ndarray, mode: str = NORMALIZE_SIGNED,
                   size: int = IMG_SIZE) -> torch.Tensor:
    """
    image (RGB / RGBA / gray, uint8) -> torch.FloatTensor (1,3,size,size).

    Nearest-neighbour resize keeps the output bit-identical for identical input.
    """
    if mode not in NORMALIZATION_MODES:
        raise ValueError(f"Unknown normalization mode: {mode}")

    rgb = to_rgb(image)
    rgb = cv2.resize(rgb, (size, size), interpolation=cv2.INTER_NEAREST)

    x = rgb.astype("float32")
    if mode == NORMALIZE_SIGNED:
        x = (x - 127.5) / 127.5
    else:
        x = x / 255.0
        if mode == NORMALIZE_IMAGENET:
            x = (x - np.array(MEAN, dtype=np.float32)) / np.array(STD, dtype=np.float32)

    x = np.transpose(x, (2, 0, 1))  # CHW
    x = np.expand_dims(x, 0)        # NCHW

    return torch.tensor(x, dtype=torch.float32)


class ScopedTensor:
    """Holds the only reference to a preprocessed tensor until released."""

    def __init__(self, tensor: torch.Tensor):
        self._tensor = tensor

    @property
    def tensor(self) -> torch.Tensor:
        if self._tensor is None:
            raise RuntimeError("Tensor was released at the end of its scope")
        return self._tensor

    @property
    def released(self) -> bool:
        return self._tensor is None

    def release(self):
        self._tensor = None


@contextmanager
def normalized_tensor(image: np.ndarray, mode: str = NORMALIZE_SIGNED, size: int = IMG_SIZE):
    """
    Scoped tensor for one classification call.

    Yields a ScopedTensor; read `.tensor` inside the block and do not keep it.
    The holder drops the tensor on exit, including when the caller bails out
    early, so nothing outlives the call.
    """
    scope = ScopedTensor(preprocess_rgb(image, mode, size))
    try:
        yield scope
    finally:
        scope.release()
