"""Tests for corner-sampling background estimation."""

import numpy as np
import pytest

from conftest import make_sprite_frame

from sprite_key.compositing.background import BackgroundEstimator
from sprite_key.core.buffer import BackgroundEstimate, Color, PixelBuffer
from sprite_key.core.config import PipelineConfig
from sprite_key.errors import SamplingFailure


def loaded(frame):
    buffer = PixelBuffer(frame.shape[0])
    buffer.load(frame)
    return buffer


def test_uniform_background():
    frame = make_sprite_frame(background=(10, 200, 30))
    assert BackgroundEstimator().estimate(loaded(frame)) == Color(10, 200, 30)


def test_subject_in_center_is_ignored():
    frame = make_sprite_frame(size=40, subject=(0, 0, 0), subject_size=20)
    assert BackgroundEstimator().estimate(loaded(frame)) == Color(255, 255, 255)


def test_channels_averaged_and_rounded_half_up():
    frame = np.zeros((20, 20, 3), dtype=np.uint8)
    frame[:10, :10] = (255, 0, 0)
    frame[:10, 10:] = (0, 255, 0)
    frame[10:, :10] = (0, 0, 255)
    frame[10:, 10:] = (255, 255, 255)

    # 510 / 4 = 127.5 on every channel
    assert BackgroundEstimator().estimate(loaded(frame)) == Color(128, 128, 128)


def test_corner_origins_are_inset():
    estimator = BackgroundEstimator(block_size=6, margin=2)
    assert estimator.corner_origins(140, 140) == [(2, 2), (132, 2), (2, 132), (132, 132)]


def test_small_buffer_blocks_are_clipped():
    frame = np.full((4, 4, 3), 255, dtype=np.uint8)
    assert BackgroundEstimator().estimate(loaded(frame)) == Color(255, 255, 255)


def test_empty_buffer_fails():
    with pytest.raises(SamplingFailure):
        BackgroundEstimator().estimate(PixelBuffer())


def test_block_outside_buffer_fails():
    buffer = PixelBuffer(1)
    with pytest.raises(SamplingFailure):
        BackgroundEstimator(block_size=6, margin=2).estimate(buffer)


def test_ready_waits_for_warmup():
    estimator = BackgroundEstimator(warmup_seconds=0.03)
    estimate = BackgroundEstimate()
    assert not estimator.ready(estimate, 0.0)
    assert not estimator.ready(estimate, 0.03)
    assert not estimator.ready(estimate, None)
    assert estimator.ready(estimate, 0.04)


def test_update_commits_once():
    estimator = BackgroundEstimator()
    estimate = BackgroundEstimate()

    assert estimator.update(estimate, loaded(make_sprite_frame()), 0.5) is True
    assert estimate.color == Color(255, 255, 255)

    red = make_sprite_frame(background=(255, 0, 0))
    assert estimator.update(estimate, loaded(red), 1.0) is False
    assert estimate.color == Color(255, 255, 255)


def test_update_before_warmup_is_noop():
    estimate = BackgroundEstimate()
    assert BackgroundEstimator().update(estimate, loaded(make_sprite_frame()), 0.0) is False
    assert not estimate.detected


def test_failed_update_leaves_estimate_open():
    estimate = BackgroundEstimate()
    with pytest.raises(SamplingFailure):
        BackgroundEstimator().update(estimate, PixelBuffer(), 1.0)
    assert not estimate.detected


def test_from_config():
    config = PipelineConfig(sample_block=4, sample_margin=1, warmup_seconds=0.5)
    estimator = BackgroundEstimator.from_config(config)
    assert (estimator.block_size, estimator.margin, estimator.warmup_seconds) == (4, 1, 0.5)
