"""
Chroma Key Filter for Sprite Key
================================

Rewrites the alpha channel of a buffer from each pixel's squared RGB
distance to the estimated background color:

- below ``tolerance^2``: alpha is forced to 0
- below ``tolerance^2 * edge_band_factor``: alpha is scaled by
  ``edge_band_attenuation`` (the edge band)
- otherwise: alpha is left alone

Color channels are never touched.
"""

from typing import Optional, Tuple

import numpy as np

from sprite_key.core.buffer import Color, PixelBuffer
from sprite_key.core.config import FilterConfig


class ChromaKeyFilter:
    """
    Two-threshold chroma key on squared RGB distance.

    Example:
        >>> key = ChromaKeyFilter(tolerance=10)
        >>> key.apply(buffer, Color(255, 255, 255))
        >>> buffer.pixel(0, 0)
        (255, 255, 255, 0)
    """

    def __init__(
        self,
        tolerance: int = 35,
        edge_band_factor: float = 1.7,
        edge_band_attenuation: float = 0.35,
    ):
        self.tolerance = tolerance
        self.edge_band_factor = edge_band_factor
        self.edge_band_attenuation = edge_band_attenuation

    @classmethod
    def from_config(cls, config: FilterConfig) -> "ChromaKeyFilter":
        return cls(
            tolerance=config.tolerance,
            edge_band_factor=config.edge_band_factor,
            edge_band_attenuation=config.edge_band_attenuation,
        )

    @property
    def thresholds(self) -> Tuple[int, float]:
        """Squared (core, edge band) thresholds."""
        t2 = self.tolerance * self.tolerance
        return t2, t2 * self.edge_band_factor

    @staticmethod
    def distance_squared(rgb: np.ndarray, background: Color) -> np.ndarray:
        """Squared Euclidean RGB distance of every pixel to the background."""
        diff = rgb.astype(np.int32) - np.array(background.as_tuple(), dtype=np.int32)
        return np.einsum("...c,...c->...", diff, diff)

    def masks(self, buffer: PixelBuffer, background: Color) -> Tuple[np.ndarray, np.ndarray]:
        """
        Boolean (background, edge band) masks for a buffer.

        The core threshold is exclusive, so a pixel at exactly
        ``tolerance^2`` falls in the edge band.
        """
        t2, band2 = self.thresholds
        dist2 = self.distance_squared(buffer.rgb, background)
        core = dist2 < t2
        band = ~core & (dist2 < band2)
        return core, band

    def apply(self, buffer: PixelBuffer, background: Optional[Color]) -> PixelBuffer:
        """
        Key the buffer in place.

        Args:
            buffer: Buffer to modify
            background: Estimated background; ``None`` makes this a no-op

        Returns:
            The same buffer
        """
        if background is None or buffer.size == 0:
            return buffer

        core, band = self.masks(buffer, background)
        alpha = buffer.alpha

        if np.any(core):
            alpha[core] = np.maximum(alpha[core].astype(np.int16) - 255, 0)

        if np.any(band):
            # Round half to even like a clamped 8-bit store
            attenuated = np.rint(alpha[band].astype(np.float64) * self.edge_band_attenuation)
            alpha[band] = np.clip(attenuated, 0, 255).astype(np.uint8)

        return buffer
