"""
Pixel Buffers for Sprite Key
============================

The RGBA sample grid passed between every pipeline stage, the background
color type and the session-scoped background estimate.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from sprite_key.errors import DrawFailure


@dataclass(frozen=True)
class Color:
    """An 8-bit RGB color."""
    r: int
    g: int
    b: int

    def __post_init__(self):
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if not 0 <= int(value) <= 255:
                raise ValueError(f"Channel {name}={value} outside 0..255")
            object.__setattr__(self, name, int(value))

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        """Parse '#rrggbb' or 'rrggbb'."""
        value = value.strip().lstrip("#")
        if len(value) != 6:
            raise ValueError(f"Expected 6 hex digits, got {value!r}")
        return cls(int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


class PixelBuffer:
    """
    Fixed-size square RGBA buffer.

    Wraps a contiguous ``uint8`` array of shape ``(size, size, 4)``. The
    keying stages mutate ``data`` in place.

    Example:
        >>> buffer = PixelBuffer(140)
        >>> buffer.load(frame_rgb)       # scaled to 140x140, alpha = 255
        >>> buffer.alpha[:2, :2]
    """

    def __init__(self, size: int = 0):
        if size < 0:
            raise ValueError(f"Buffer size must be >= 0, got {size}")
        self._data = np.zeros((size, size, 4), dtype=np.uint8)

    @classmethod
    def from_array(cls, rgba: np.ndarray) -> "PixelBuffer":
        """Build a buffer holding a copy of a square RGBA array."""
        rgba = np.asarray(rgba)
        if rgba.ndim != 3 or rgba.shape[2] != 4 or rgba.shape[0] != rgba.shape[1]:
            raise ValueError(f"Expected square (S, S, 4) array, got {rgba.shape}")
        buffer = cls(rgba.shape[0])
        buffer._data[...] = np.clip(rgba, 0, 255).astype(np.uint8)
        return buffer

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def size(self) -> int:
        return self._data.shape[0]

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def height(self) -> int:
        return self._data.shape[0]

    @property
    def rgb(self) -> np.ndarray:
        """View of the color channels."""
        return self._data[..., :3]

    @property
    def alpha(self) -> np.ndarray:
        """View of the alpha channel."""
        return self._data[..., 3]

    def ensure_size(self, size: int) -> bool:
        """
        Resize to ``size`` x ``size`` if not already that size.

        Returns:
            True if the buffer was reallocated (and cleared)
        """
        if size <= 0:
            raise ValueError(f"Buffer size must be > 0, got {size}")
        if self.size == size:
            return False
        self._data = np.zeros((size, size, 4), dtype=np.uint8)
        return True

    def clear(self) -> None:
        self._data.fill(0)

    def load(self, frame: np.ndarray) -> None:
        """
        Copy a decoded frame into the buffer, scaling it to fit.

        Args:
            frame: HxW gray, HxWx3 RGB or HxWx4 RGBA array. Integer frames
                hold 8-bit values; float frames hold values in [0, 1] and
                are scaled to 8 bits.

        Raises:
            DrawFailure: the frame cannot be converted or the buffer is empty
        """
        if self.size == 0:
            raise DrawFailure("Buffer has not been sized")

        rgba = _to_rgba8(frame)

        h, w = rgba.shape[:2]
        if (h, w) != (self.height, self.width):
            import cv2

            shrinking = h > self.height or w > self.width
            interp = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
            rgba = cv2.resize(rgba, (self.width, self.height), interpolation=interp)

        np.copyto(self._data, rgba)

    def region(self, x: int, y: int, width: int, height: int) -> np.ndarray:
        """
        View of a rectangle, clipped to the buffer bounds.

        The returned view may be empty when the rectangle lies outside.
        """
        x0 = min(max(x, 0), self.width)
        y0 = min(max(y, 0), self.height)
        x1 = min(max(x + width, 0), self.width)
        y1 = min(max(y + height, 0), self.height)
        return self._data[y0:y1, x0:x1]

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        r, g, b, a = self._data[y, x]
        return (int(r), int(g), int(b), int(a))

    def copy(self) -> "PixelBuffer":
        return PixelBuffer.from_array(self._data)

    def __repr__(self) -> str:
        return f"PixelBuffer(size={self.size})"


def _to_rgba8(frame: np.ndarray) -> np.ndarray:
    """Convert a gray/RGB/RGBA frame to a uint8 RGBA array."""
    if frame is None:
        raise DrawFailure("No frame data")

    frame = np.asarray(frame)
    if frame.ndim == 2:
        frame = frame[..., np.newaxis]
    if frame.ndim != 3 or frame.shape[0] == 0 or frame.shape[1] == 0:
        raise DrawFailure(f"Unsupported frame shape {frame.shape}")

    # Float frames are normalized to [0, 1]
    if np.issubdtype(frame.dtype, np.floating):
        frame = np.rint(frame * 255.0)
    frame = np.clip(frame, 0, 255).astype(np.uint8)

    channels = frame.shape[2]
    h, w = frame.shape[:2]
    if channels == 4:
        return np.ascontiguousarray(frame)

    if channels not in (1, 3):
        raise DrawFailure(f"Unsupported channel count {channels}")

    rgba = np.empty((h, w, 4), dtype=np.uint8)
    rgba[..., :3] = frame  # gray broadcasts across RGB
    rgba[..., 3] = 255
    return rgba


class BackgroundEstimate:
    """
    Session-scoped background color.

    Starts undetected and is committed at most once per session. Later
    commits are ignored until ``reset()`` starts a new session.
    """

    def __init__(self):
        self._color: Optional[Color] = None

    @property
    def color(self) -> Optional[Color]:
        return self._color

    @property
    def detected(self) -> bool:
        return self._color is not None

    def commit(self, color: Color) -> bool:
        """
        Record the background color.

        Returns:
            True if this call detected the background, False if a color
            was already committed this session
        """
        if self._color is not None:
            return False
        self._color = color
        return True

    def reset(self) -> None:
        self._color = None

    def __repr__(self) -> str:
        return f"BackgroundEstimate(color={self._color})"
