"""
Sprite Key - Real-Time Flat Background Removal
==============================================

Removes a near-uniform background color from a stream of video frames,
producing small RGBA sprites for overlay compositing:

- Background color estimated once per session from four corner blocks
- Two-threshold chroma key on squared RGB distance (hard core + edge band)
- Cheap two-pass horizontal edge softening
- Cooperative, cancellable tick loop driven by an injected scheduler

Designed for icon-sized animated overlays cut from studio footage shot on
white or another flat color.
"""

__version__ = "1.0.0"

# Core
from sprite_key.core.buffer import BackgroundEstimate, Color, PixelBuffer
from sprite_key.core.config import FilterConfig, PipelineConfig

# Keying stages
from sprite_key.compositing.background import BackgroundEstimator
from sprite_key.compositing.chroma import ChromaKeyFilter
from sprite_key.compositing.soften import EdgeSoftener

# Pipeline
from sprite_key.pipeline.loop import LoopState, PipelineLoop, TickResult, TickStatus
from sprite_key.pipeline.scheduler import CadenceScheduler, ManualScheduler

# Errors
from sprite_key.errors import (
    ConfigError,
    DrawFailure,
    SamplingFailure,
    SourceNotReady,
    SpriteKeyError,
)

__all__ = [
    # Core
    "BackgroundEstimate",
    "Color",
    "PixelBuffer",
    "FilterConfig",
    "PipelineConfig",
    # Keying
    "BackgroundEstimator",
    "ChromaKeyFilter",
    "EdgeSoftener",
    # Pipeline
    "LoopState",
    "PipelineLoop",
    "TickResult",
    "TickStatus",
    "CadenceScheduler",
    "ManualScheduler",
    # Errors
    "ConfigError",
    "DrawFailure",
    "SamplingFailure",
    "SourceNotReady",
    "SpriteKeyError",
    # Meta
    "__version__",
]
