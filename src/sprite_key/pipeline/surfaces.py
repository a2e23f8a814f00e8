"""
Presentation Surfaces for Sprite Key
====================================

Receivers of the processed buffer, one call per tick. The configured
opacity is applied here as a whole-buffer factor, never by the keying
stages. Surfaces borrow the working buffer and copy what they keep.
"""

from collections import deque
from pathlib import Path
from typing import Callable, Deque, List, Optional, Protocol, Union

import numpy as np

from sprite_key.core.buffer import PixelBuffer
from sprite_key.utils.image import apply_opacity, save_image


class PresentationSurface(Protocol):
    def present(self, buffer: PixelBuffer, opacity: float) -> None:
        ...


class MemorySurface:
    """
    Keeps presented frames in memory.

    Example:
        >>> surface = MemorySurface(maxlen=1)
        >>> loop = PipelineLoop(source, surface, scheduler)
        >>> scheduler.step()
        >>> surface.last.shape
        (140, 140, 4)
    """

    def __init__(self, maxlen: Optional[int] = None):
        self.frames: Deque[np.ndarray] = deque(maxlen=maxlen)
        self.presented = 0

    def present(self, buffer: PixelBuffer, opacity: float) -> None:
        self.frames.append(apply_opacity(buffer.data, opacity))
        self.presented += 1

    @property
    def last(self) -> Optional[np.ndarray]:
        return self.frames[-1] if self.frames else None


class ImageSequenceSurface:
    """Writes each presented frame as a numbered RGBA PNG."""

    def __init__(
        self,
        directory: Union[str, Path],
        prefix: str = "frame",
        max_frames: Optional[int] = None,
    ):
        self.directory = Path(directory)
        self.prefix = prefix
        self.max_frames = max_frames
        self.written: List[Path] = []

    def present(self, buffer: PixelBuffer, opacity: float) -> None:
        if self.max_frames is not None and len(self.written) >= self.max_frames:
            return
        path = self.directory / f"{self.prefix}_{len(self.written):06d}.png"
        self.written.append(save_image(apply_opacity(buffer.data, opacity), path))


class CallbackSurface:
    """Forwards the opacity-applied RGBA array to a callable."""

    def __init__(self, callback: Callable[[np.ndarray], None]):
        self.callback = callback

    def present(self, buffer: PixelBuffer, opacity: float) -> None:
        self.callback(apply_opacity(buffer.data, opacity))
