"""
Frame Sources for Sprite Key
============================

Decoded-frame providers consumed by the pipeline loop. A source hands
out the current frame on demand and reports its playback position,
which gates background estimation until the decoder has warmed up.
"""

import logging
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Union

import numpy as np
from PIL import Image

from sprite_key.errors import SourceNotReady

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """Current decoded frame plus playback position in seconds."""

    @property
    def position(self) -> float:
        ...

    def read(self) -> np.ndarray:
        ...


class ArraySource:
    """
    In-memory frame sequence.

    Each ``read()`` returns the next frame; ``position`` is the timestamp
    of the frame last returned, derived from ``fps``.

    Example:
        >>> source = ArraySource([frame_a, frame_b], fps=30)
        >>> source.read() is frame_a
        True
    """

    def __init__(
        self,
        frames: Sequence[Optional[np.ndarray]],
        fps: float = 30.0,
        loop: bool = True,
    ):
        if fps <= 0:
            raise ValueError(f"fps must be > 0, got {fps}")
        self.frames = list(frames)
        self.fps = fps
        self.loop = loop
        self._index = -1

    @property
    def frame_index(self) -> int:
        return self._index

    @property
    def position(self) -> float:
        return max(self._index, 0) / self.fps

    def read(self) -> np.ndarray:
        if not self.frames:
            raise SourceNotReady("Source has no frames")

        next_index = self._index + 1
        if next_index >= len(self.frames):
            if not self.loop:
                raise SourceNotReady("End of stream")
            next_index = 0
        self._index = next_index

        frame = self.frames[next_index]
        if frame is None:
            raise SourceNotReady(f"Frame {next_index} not decoded")
        return frame


class ImageSequenceSource(ArraySource):
    """
    Frames loaded lazily from an image directory.

    Files are matched with ``pattern`` and played in sorted order.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        pattern: str = "*.png",
        fps: float = 24.0,
        loop: bool = True,
    ):
        directory = Path(directory)
        paths = sorted(directory.glob(pattern))
        if not paths:
            raise ValueError(f"No frames found matching pattern: {pattern}")

        super().__init__([None] * len(paths), fps=fps, loop=loop)
        self.paths: List[Path] = paths

    def read(self) -> np.ndarray:
        next_index = self._index + 1
        if next_index >= len(self.paths):
            if not self.loop:
                raise SourceNotReady("End of sequence")
            next_index = 0
        self._index = next_index

        path = self.paths[next_index]
        try:
            with Image.open(path) as img:
                return np.array(img.convert("RGBA"))
        except OSError as e:
            raise SourceNotReady(f"Cannot read {path.name}: {e}") from e


class VideoFileSource:
    """
    Frames decoded from a video file with OpenCV.

    Plays muted and, by default, loops back to the first frame at the end
    of the stream.

    Example:
        >>> with VideoFileSource("sprite.mp4") as source:
        ...     frame = source.read()
    """

    def __init__(self, path: Union[str, Path], loop: bool = True):
        import cv2

        self.path = Path(path)
        self.loop = loop
        self._cap = cv2.VideoCapture(str(self.path))

        if not self._cap.isOpened():
            raise RuntimeError(f"Failed to open video: {self.path}")

        self.fps = self._cap.get(cv2.CAP_PROP_FPS) or 0.0
        self.frame_count = int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT))
        self.width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

    @property
    def position(self) -> float:
        import cv2

        if self._cap is None:
            return 0.0
        return self._cap.get(cv2.CAP_PROP_POS_MSEC) / 1000.0

    def read(self) -> np.ndarray:
        import cv2

        if self._cap is None:
            raise SourceNotReady("Video source is closed")

        ret, frame = self._cap.read()
        if not ret and self.loop:
            logger.debug("Looping %s", self.path.name)
            self._cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ret, frame = self._cap.read()
        if not ret or frame is None:
            raise SourceNotReady(f"No frame decoded from {self.path.name}")

        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def __enter__(self) -> "VideoFileSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def open_source(
    path: Union[str, Path],
    pattern: str = "*.png",
    fps: float = 24.0,
    loop: bool = True,
) -> Union[ImageSequenceSource, VideoFileSource]:
    """Open a directory as an image sequence, anything else as a video."""
    path = Path(path)
    if path.is_dir():
        return ImageSequenceSource(path, pattern=pattern, fps=fps, loop=loop)
    return VideoFileSource(path, loop=loop)
