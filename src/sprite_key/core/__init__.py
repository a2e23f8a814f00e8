"""
Core Data Model for Sprite Key
==============================

Pixel buffers, colors, the session-scoped background estimate and
pipeline configuration.
"""

from sprite_key.core.buffer import BackgroundEstimate, Color, PixelBuffer
from sprite_key.core.config import FilterConfig, PipelineConfig

__all__ = [
    "BackgroundEstimate",
    "Color",
    "PixelBuffer",
    "FilterConfig",
    "PipelineConfig",
]
