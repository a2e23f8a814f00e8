"""
Background Estimation for Sprite Key
====================================

Estimates a single flat background color by averaging four small blocks
inset from the corners of a frame. The subject is assumed not to reach
into those corners.
"""

from typing import List, Optional, Tuple

import numpy as np

from sprite_key.core.buffer import BackgroundEstimate, Color, PixelBuffer
from sprite_key.core.config import PipelineConfig
from sprite_key.errors import SamplingFailure


class BackgroundEstimator:
    """
    Corner-sampling background estimator.

    Samples four ``block_size`` x ``block_size`` blocks inset by ``margin``
    pixels from each corner and averages R, G and B independently.

    Example:
        >>> estimator = BackgroundEstimator(block_size=6, margin=2)
        >>> estimate = BackgroundEstimate()
        >>> estimator.update(estimate, buffer, position=0.5)
        True
        >>> estimate.color
        Color(r=255, g=255, b=255)
    """

    def __init__(
        self,
        block_size: int = 6,
        margin: int = 2,
        warmup_seconds: float = 0.03,
    ):
        self.block_size = block_size
        self.margin = margin
        self.warmup_seconds = warmup_seconds

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "BackgroundEstimator":
        return cls(
            block_size=config.sample_block,
            margin=config.sample_margin,
            warmup_seconds=config.warmup_seconds,
        )

    def corner_origins(self, width: int, height: int) -> List[Tuple[int, int]]:
        """Top-left (x, y) of each sample block: TL, TR, BL, BR."""
        s, m = self.block_size, self.margin
        return [
            (m, m),
            (width - s - m, m),
            (m, height - s - m),
            (width - s - m, height - s - m),
        ]

    def corner_blocks(self, buffer: PixelBuffer) -> List[np.ndarray]:
        """
        Read the four corner blocks, clipped to the buffer.

        Raises:
            SamplingFailure: the buffer is empty or a block lies entirely
                outside it
        """
        if buffer is None or buffer.size == 0:
            raise SamplingFailure("No pixel data to sample")

        blocks = []
        for x, y in self.corner_origins(buffer.width, buffer.height):
            block = buffer.region(x, y, self.block_size, self.block_size)
            if block.size == 0:
                raise SamplingFailure(
                    f"Corner block at ({x}, {y}) is outside a "
                    f"{buffer.width}x{buffer.height} buffer"
                )
            blocks.append(block)
        return blocks

    def estimate(self, buffer: PixelBuffer) -> Color:
        """
        Average the corner blocks into one color.

        Raises:
            SamplingFailure: the corners cannot be read
        """
        samples = np.concatenate(
            [block.reshape(-1, 4)[:, :3] for block in self.corner_blocks(buffer)]
        ).astype(np.int64)

        # Round half up
        mean = np.floor(samples.sum(axis=0) / samples.shape[0] + 0.5).astype(int)
        return Color(*mean.tolist())

    def ready(self, estimate: BackgroundEstimate, position: Optional[float]) -> bool:
        """True when the estimate is still open and the warm-up has elapsed."""
        if estimate.detected or position is None:
            return False
        return position > self.warmup_seconds

    def update(
        self,
        estimate: BackgroundEstimate,
        buffer: PixelBuffer,
        position: Optional[float],
    ) -> bool:
        """
        Estimate and commit the background if the guard allows it.

        Returns:
            True if this call committed the estimate

        Raises:
            SamplingFailure: sampling failed; the estimate stays undetected
        """
        if not self.ready(estimate, position):
            return False
        return estimate.commit(self.estimate(buffer))
