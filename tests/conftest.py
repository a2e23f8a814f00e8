"""Shared fixtures for the sprite_key test suite."""

import numpy as np
import pytest
from PIL import Image

from sprite_key.pipeline.scheduler import ManualScheduler
from sprite_key.pipeline.surfaces import MemorySurface


def make_sprite_frame(size=32, background=(255, 255, 255), subject=(0, 0, 0), subject_size=12):
    """RGB frame: flat background with a square subject in the middle."""
    frame = np.empty((size, size, 3), dtype=np.uint8)
    frame[...] = background
    start = (size - subject_size) // 2
    frame[start:start + subject_size, start:start + subject_size] = subject
    return frame


def make_rgba(pixels):
    """Square uint8 RGBA array from a nested list of (r, g, b, a)."""
    return np.array(pixels, dtype=np.uint8)


@pytest.fixture
def sprite_frame():
    return make_sprite_frame()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def surface():
    return MemorySurface()


@pytest.fixture
def sprite_sequence(tmp_path):
    """Directory of three white-background sprite PNGs."""
    directory = tmp_path / "frames"
    directory.mkdir()
    for i in range(3):
        Image.fromarray(make_sprite_frame()).save(directory / f"sprite_{i:03d}.png")
    return directory


@pytest.fixture
def sprite_clip(tmp_path):
    """Five-frame 30 fps MJPG clip: blue background, black subject."""
    cv2 = pytest.importorskip("cv2")

    path = tmp_path / "sprite.avi"
    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 30.0, (32, 32))
    if not writer.isOpened():
        pytest.skip("MJPG encoder not available")

    frame_rgb = make_sprite_frame(background=(0, 0, 255))
    try:
        for _ in range(5):
            writer.write(cv2.cvtColor(frame_rgb, cv2.COLOR_RGB2BGR))
    finally:
        writer.release()
    return path
