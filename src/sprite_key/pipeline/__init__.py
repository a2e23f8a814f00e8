"""
Processing Pipeline for Sprite Key
==================================

The tick loop plus the schedulers, frame sources and presentation
surfaces it is wired to.
"""

from sprite_key.pipeline.loop import LoopState, PipelineLoop, TickResult, TickStatus
from sprite_key.pipeline.scheduler import CadenceScheduler, ManualScheduler, Scheduler
from sprite_key.pipeline.sources import (
    ArraySource,
    FrameSource,
    ImageSequenceSource,
    VideoFileSource,
    open_source,
)
from sprite_key.pipeline.surfaces import (
    CallbackSurface,
    ImageSequenceSurface,
    MemorySurface,
    PresentationSurface,
)

__all__ = [
    "LoopState",
    "PipelineLoop",
    "TickResult",
    "TickStatus",
    # Scheduling
    "CadenceScheduler",
    "ManualScheduler",
    "Scheduler",
    # Sources
    "ArraySource",
    "FrameSource",
    "ImageSequenceSource",
    "VideoFileSource",
    "open_source",
    # Surfaces
    "CallbackSurface",
    "ImageSequenceSurface",
    "MemorySurface",
    "PresentationSurface",
]
