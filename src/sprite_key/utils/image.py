"""
Image Utilities for Sprite Key
==============================
"""

from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image


def apply_opacity(rgba: np.ndarray, opacity: float) -> np.ndarray:
    """
    Multiply a whole RGBA image's alpha by ``opacity``.

    Args:
        rgba: uint8 RGBA image
        opacity: Factor in [0, 1]

    Returns:
        New uint8 RGBA image; the input is left untouched
    """
    out = np.array(rgba, dtype=np.uint8, copy=True)
    if opacity >= 1.0:
        return out
    alpha = out[..., 3].astype(np.float64) * max(opacity, 0.0)
    out[..., 3] = np.clip(np.rint(alpha), 0, 255).astype(np.uint8)
    return out


def composite_over(
    rgba: np.ndarray,
    backdrop: Tuple[int, int, int] = (0, 0, 0),
) -> np.ndarray:
    """
    Composite an RGBA image over a flat backdrop color.

    Returns:
        uint8 RGB image
    """
    image = rgba.astype(np.float32) / 255.0
    alpha = image[..., 3:4]
    bg = np.array(backdrop, dtype=np.float32) / 255.0
    rgb = image[..., :3] * alpha + bg * (1.0 - alpha)
    return (rgb * 255).round().clip(0, 255).astype(np.uint8)


def save_image(image: np.ndarray, path: Union[str, Path]) -> Path:
    """
    Save an image to disk, creating parent directories.

    Args:
        image: uint8 RGB or RGBA array
        path: Output path

    Returns:
        The written path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # Handle float images
    if image.dtype in (np.float32, np.float64):
        if image.max() <= 1.0:
            image = (image * 255).clip(0, 255).astype(np.uint8)
        else:
            image = image.clip(0, 255).astype(np.uint8)

    Image.fromarray(image).save(path)
    return path


def load_image(path: Union[str, Path]) -> np.ndarray:
    """Load an image as a uint8 RGBA array."""
    with Image.open(path) as img:
        return np.array(img.convert("RGBA"))
