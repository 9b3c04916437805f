"""Pixel property analysis: transparency, brightness and texture heuristics."""

import numpy as np
from dataclasses import dataclass

from domain.errors import InvalidImageError
from trust.config import (
    BRIGHT_PIXEL_MIN, TRANSPARENT_RATIO_MIN, OPAQUE_BRIGHTNESS_MAX, TEXTURE_MIN
)


@dataclass(frozen=True)
class ImageStatistics:
    """Aggregate visual statistics for one image."""
    transparency_ratio: float = 0.0
    average_brightness: float = 0.0
    texture_variation: float = 0.0
    is_transparent: bool = False
    is_opaque: bool = False
    has_texture: bool = False

    @classmethod
    def from_measurements(cls, transparency_ratio: float, average_brightness: float,
                          texture_variation: float) -> "ImageStatistics":
        """
        Derive the boolean flags from the raw measurements, then clamp to [0, 1].

        texture_variation arrives as a mean brightness step in 0-255 units, so
        has_texture compares the unscaled value against TEXTURE_MIN.
        """
        has_texture = texture_variation > TEXTURE_MIN
        transparency_ratio = _clamp(transparency_ratio)
        average_brightness = _clamp(average_brightness)
        texture_variation = _clamp(texture_variation)

        return cls(
            transparency_ratio=transparency_ratio,
            average_brightness=average_brightness,
            texture_variation=texture_variation,
            is_transparent=transparency_ratio > TRANSPARENT_RATIO_MIN,
            is_opaque=average_brightness < OPAQUE_BRIGHTNESS_MAX,
            has_texture=bool(has_texture),
        )


def _clamp(value: float) -> float:
    return float(min(1.0, max(0.0, value)))


def compute_pixel_brightness(image: np.ndarray) -> np.ndarray:
    """
    Per-pixel brightness as the mean of R, G, B, flattened in scan order.

    Args:
        image: HxW grayscale, HxWx3 RGB or HxWx4 RGBA (alpha is ignored)

    Returns:
        1-D float64 array of brightness values (0-255)
    """
    if not isinstance(image, np.ndarray):
        raise InvalidImageError(f"Expected a numpy array, got {type(image).__name__}")
    if image.size == 0:
        raise InvalidImageError("Image has zero size")

    if image.ndim == 2:
        brightness = image.astype(np.float64)
    elif image.ndim == 3 and image.shape[2] in (1, 3, 4):
        channels = image[:, :, :3] if image.shape[2] >= 3 else image
        brightness = channels.astype(np.float64).mean(axis=2)
    else:
        raise InvalidImageError(f"Unsupported image shape: {image.shape}")

    return brightness.reshape(-1)


def analyze_image_properties(image: np.ndarray) -> ImageStatistics:
    """
    Derive transparency, brightness and texture statistics in one pass.

    Texture variation is the mean absolute brightness step between each pixel
    and its predecessor in scan order (0-255 units divided by pixel count),
    clamped to [0, 1].

    Args:
        image: Decoded image (see compute_pixel_brightness)

    Returns:
        ImageStatistics for the image

    Raises:
        InvalidImageError: For zero-size or malformed input
    """
    brightness = compute_pixel_brightness(image)
    total_pixels = brightness.size

    bright_count = int(np.count_nonzero(brightness > BRIGHT_PIXEL_MIN))
    brightness_sum = float(brightness.sum())
    step_sum = float(np.abs(np.diff(brightness)).sum())

    return ImageStatistics.from_measurements(
        transparency_ratio=bright_count / total_pixels,
        average_brightness=brightness_sum / total_pixels / 255.0,
        texture_variation=step_sum / total_pixels,
    )
