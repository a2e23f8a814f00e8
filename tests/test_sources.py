"""Tests for frame sources."""

import numpy as np
import pytest

from conftest import make_sprite_frame

from sprite_key.core.config import PipelineConfig
from sprite_key.errors import SourceNotReady
from sprite_key.pipeline.loop import PipelineLoop, TickStatus
from sprite_key.pipeline.sources import ArraySource, ImageSequenceSource, VideoFileSource, open_source


def test_array_source_position_follows_fps():
    frames = [np.zeros((2, 2, 3), dtype=np.uint8) for _ in range(3)]
    source = ArraySource(frames, fps=10)
    assert source.position == 0.0

    assert source.read() is frames[0]
    assert source.position == 0.0
    source.read()
    assert source.position == pytest.approx(0.1)


def test_array_source_loops():
    frames = ["a", "b"]
    source = ArraySource(frames, loop=True)
    assert [source.read() for _ in range(5)] == ["a", "b", "a", "b", "a"]


def test_array_source_end_of_stream():
    source = ArraySource(["a"], loop=False)
    source.read()
    with pytest.raises(SourceNotReady):
        source.read()


def test_array_source_missing_frame():
    source = ArraySource([None, "b"])
    with pytest.raises(SourceNotReady):
        source.read()
    assert source.read() == "b"


def test_array_source_empty():
    with pytest.raises(SourceNotReady):
        ArraySource([]).read()


def test_image_sequence_reads_sorted_rgba(sprite_sequence):
    source = ImageSequenceSource(sprite_sequence, fps=24)
    assert [p.name for p in source.paths] == ["sprite_000.png", "sprite_001.png", "sprite_002.png"]

    frame = source.read()
    assert frame.shape == (32, 32, 4)
    np.testing.assert_array_equal(frame[..., :3], make_sprite_frame())

    source.read()
    assert source.position == pytest.approx(1 / 24)


def test_image_sequence_without_loop(sprite_sequence):
    source = ImageSequenceSource(sprite_sequence, loop=False)
    for _ in range(3):
        source.read()
    with pytest.raises(SourceNotReady):
        source.read()


def test_image_sequence_unreadable_file(tmp_path):
    (tmp_path / "broken.png").write_bytes(b"not a png")
    with pytest.raises(SourceNotReady):
        ImageSequenceSource(tmp_path).read()


def test_image_sequence_requires_frames(tmp_path):
    with pytest.raises(ValueError):
        ImageSequenceSource(tmp_path)


def test_open_source_directory(sprite_sequence):
    assert isinstance(open_source(sprite_sequence), ImageSequenceSource)


def test_video_source_missing_file(tmp_path):
    with pytest.raises(RuntimeError):
        VideoFileSource(tmp_path / "missing.mp4")


class TestVideoFileSource:

    def test_reads_rgb_frames(self, sprite_clip):
        with VideoFileSource(sprite_clip) as source:
            assert (source.width, source.height) == (32, 32)
            assert source.frame_count == 5

            frame = source.read()

        assert frame.shape == (32, 32, 3)
        r, g, b = frame[0, 0].tolist()
        assert r < 30 and g < 30 and b > 220
        assert frame[16, 16].max() < 30

    def test_positions_follow_frame_rate(self, sprite_clip):
        with VideoFileSource(sprite_clip) as source:
            positions = []
            for _ in range(5):
                source.read()
                positions.append(source.position)

        assert positions == pytest.approx([i / 30 for i in range(5)], abs=1e-3)

    def test_loops_back_to_start(self, sprite_clip):
        with VideoFileSource(sprite_clip, loop=True) as source:
            first = source.read()
            for _ in range(4):
                source.read()

            wrapped = source.read()
            assert source.position == pytest.approx(0.0, abs=1e-3)
            source.read()
            assert source.position == pytest.approx(1 / 30, abs=1e-3)

        np.testing.assert_array_equal(wrapped, first)

    def test_end_of_stream_without_loop(self, sprite_clip):
        with VideoFileSource(sprite_clip, loop=False) as source:
            for _ in range(5):
                source.read()
            with pytest.raises(SourceNotReady):
                source.read()

    def test_closed_source_is_not_ready(self, sprite_clip):
        source = VideoFileSource(sprite_clip)
        source.close()
        source.close()
        assert source.position == 0.0
        with pytest.raises(SourceNotReady):
            source.read()

    def test_pipeline_keys_from_second_tick(self, sprite_clip, scheduler, surface):
        with VideoFileSource(sprite_clip) as source:
            loop = PipelineLoop(source, surface, scheduler, PipelineConfig(size=32))
            results = scheduler.run(7)
            loop.cancel()

        statuses = [r.status for r in results]
        assert statuses[0] is TickStatus.UNKEYED
        assert statuses[1:] == [TickStatus.KEYED] * 6
        assert results[1].estimated

        r, g, b = loop.background.as_tuple()
        assert r < 30 and g < 30 and b > 220
        assert surface.last[0, 0, 3] == 0
        assert surface.last[16, 16, 3] > 0

    def test_open_source_file(self, sprite_clip):
        source = open_source(sprite_clip)
        try:
            assert isinstance(source, VideoFileSource)
        finally:
            source.close()
