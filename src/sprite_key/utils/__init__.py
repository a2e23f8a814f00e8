"""
Utilities for Sprite Key
========================
"""

from sprite_key.utils.image import apply_opacity, composite_over, load_image, save_image

__all__ = [
    "apply_opacity",
    "composite_over",
    "load_image",
    "save_image",
]
