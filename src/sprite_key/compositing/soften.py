"""
Edge Softening for Sprite Key
=============================

Cheap one-axis smoothing of keyed edges: the buffer is composited over
itself shifted left and then right by ``softness`` pixels, each pass at a
low fixed opacity. Only horizontal smoothing is applied.
"""

import numpy as np

from sprite_key.core.buffer import PixelBuffer
from sprite_key.core.config import FilterConfig


class EdgeSoftener:
    """
    Two-pass horizontal self-composite.

    Each pass translates the current buffer by a (possibly sub-pixel)
    offset with bilinear sampling and transparent borders, then draws it
    source-over onto the buffer at ``opacity``.

    Example:
        >>> softener = EdgeSoftener(softness=0.6)
        >>> softener.apply(buffer)
    """

    def __init__(self, softness: float = 0.6, opacity: float = 0.3):
        self.softness = softness
        self.opacity = opacity

    @classmethod
    def from_config(cls, config: FilterConfig) -> "EdgeSoftener":
        return cls(softness=config.softness, opacity=config.soften_opacity)

    @property
    def enabled(self) -> bool:
        return self.softness > 0 and self.opacity > 0

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        """Soften the buffer in place; a no-op when softness is 0."""
        if not self.enabled or buffer.size == 0:
            return buffer

        image = buffer.data.astype(np.float32) / 255.0
        image = self._composite_pass(image, -self.softness)
        image = self._composite_pass(image, self.softness)

        buffer.data[...] = np.clip(np.rint(image * 255.0), 0, 255).astype(np.uint8)
        return buffer

    def _composite_pass(self, image: np.ndarray, dx: float) -> np.ndarray:
        shifted = shift_horizontal(image, dx)
        return composite_source_over(shifted, image, self.opacity)


def shift_horizontal(image: np.ndarray, dx: float) -> np.ndarray:
    """
    Translate an RGBA float image by ``dx`` pixels along x.

    Color is premultiplied before resampling so transparent pixels do not
    bleed their color into the interpolated edge.
    """
    import cv2

    h, w = image.shape[:2]
    premult = image.copy()
    premult[..., :3] *= premult[..., 3:4]

    matrix = np.float32([[1, 0, dx], [0, 1, 0]])
    moved = cv2.warpAffine(
        premult,
        matrix,
        (w, h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(0, 0, 0, 0),
    )

    alpha = moved[..., 3:4]
    safe = np.where(alpha > 1e-6, alpha, 1.0)
    moved[..., :3] = np.where(alpha > 1e-6, moved[..., :3] / safe, 0.0)
    return moved


def composite_source_over(
    source: np.ndarray,
    destination: np.ndarray,
    opacity: float = 1.0,
) -> np.ndarray:
    """
    Straight-alpha source-over of two RGBA float images in [0, 1].

    ``opacity`` scales the source alpha, like a global alpha on draw.
    """
    src_a = source[..., 3:4] * opacity
    dst_a = destination[..., 3:4]

    out_a = src_a + dst_a * (1.0 - src_a)
    premult = source[..., :3] * src_a + destination[..., :3] * dst_a * (1.0 - src_a)

    safe = np.where(out_a > 1e-6, out_a, 1.0)
    out_rgb = np.where(out_a > 1e-6, premult / safe, 0.0)

    return np.concatenate([out_rgb, out_a], axis=-1).astype(np.float32)
