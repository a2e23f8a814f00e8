"""
Keying Stages for Sprite Key
============================

Background estimation, chroma keying and edge softening.
"""

from sprite_key.compositing.background import BackgroundEstimator
from sprite_key.compositing.chroma import ChromaKeyFilter
from sprite_key.compositing.soften import EdgeSoftener, composite_source_over, shift_horizontal

__all__ = [
    "BackgroundEstimator",
    "ChromaKeyFilter",
    "EdgeSoftener",
    "composite_source_over",
    "shift_horizontal",
]
