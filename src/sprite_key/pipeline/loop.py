"""
Pipeline Loop for Sprite Key
============================

Per-tick orchestration: pull a frame, estimate the background once per
session, key and soften, then present. Every tick failure is absorbed
and reported as a ``TickStatus`` so the loop keeps running.
"""

import dataclasses
import logging
from collections import Counter, deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, Optional

from sprite_key.compositing.background import BackgroundEstimator
from sprite_key.compositing.chroma import ChromaKeyFilter
from sprite_key.compositing.soften import EdgeSoftener
from sprite_key.core.buffer import BackgroundEstimate, Color, PixelBuffer
from sprite_key.core.config import PipelineConfig
from sprite_key.errors import DrawFailure, SamplingFailure, SourceNotReady
from sprite_key.pipeline.scheduler import Scheduler
from sprite_key.pipeline.sources import FrameSource
from sprite_key.pipeline.surfaces import PresentationSurface

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """Pipeline loop lifecycle."""
    IDLE = "idle"             # Constructed, nothing scheduled
    RUNNING = "running"       # Ticking
    CANCELLED = "cancelled"   # Terminal


class TickStatus(Enum):
    """Outcome of a single tick."""
    KEYED = "keyed"                       # Keyed frame presented
    UNKEYED = "unkeyed"                   # No background yet, raw frame presented
    SOURCE_NOT_READY = "source_not_ready" # No frame this tick
    DRAW_FAILED = "draw_failed"           # Processing or presenting failed
    CANCELLED = "cancelled"               # Tick fired after cancellation


@dataclass
class TickResult:
    """What happened during one tick."""
    status: TickStatus
    tick: int
    position: Optional[float] = None
    background: Optional[Color] = None
    estimated: bool = False               # Background committed this tick
    sampling_error: Optional[SamplingFailure] = None
    error: Optional[Exception] = None

    @property
    def presented(self) -> bool:
        return self.status in (TickStatus.KEYED, TickStatus.UNKEYED)


class PipelineLoop:
    """
    Cancellable repeating keying task.

    One session spans the lifetime of a loop bound to one source and
    output size. The background estimate is committed at most once per
    session and reset when the source or size changes.

    Example:
        >>> scheduler = ManualScheduler()
        >>> surface = MemorySurface()
        >>> loop = PipelineLoop(source, surface, scheduler, PipelineConfig(size=64))
        >>> result = scheduler.step()
        >>> result.status
        <TickStatus.UNKEYED: 'unkeyed'>
        >>> loop.cancel()
    """

    def __init__(
        self,
        source: FrameSource,
        surface: PresentationSurface,
        scheduler: Scheduler,
        config: Optional[PipelineConfig] = None,
        autostart: bool = True,
        history_size: int = 256,
    ):
        self.config = (config or PipelineConfig()).validate()
        self.source = source
        self.surface = surface
        self.scheduler = scheduler

        self.state = LoopState.IDLE
        self.buffer = PixelBuffer()
        self.estimate = BackgroundEstimate()
        self.history: Deque[TickResult] = deque(maxlen=history_size)

        self._handle: Optional[int] = None
        self._tick_count = 0
        self._build_stages()

        if autostart:
            self.start()

    def _build_stages(self) -> None:
        filter_config = self.config.filter_config
        self.estimator = BackgroundEstimator.from_config(self.config)
        self.chroma = ChromaKeyFilter.from_config(filter_config)
        self.softener = EdgeSoftener.from_config(filter_config)

    @property
    def background(self) -> Optional[Color]:
        return self.estimate.color

    @property
    def ticks(self) -> int:
        return self._tick_count

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin scheduling ticks. No-op while already running."""
        if self.state is LoopState.RUNNING:
            return
        if self.state is LoopState.CANCELLED:
            raise RuntimeError("A cancelled pipeline loop cannot be restarted")
        self.state = LoopState.RUNNING
        self._schedule_next()

    def cancel(self) -> None:
        """Stop scheduling ticks. Safe to call any number of times."""
        if self.state is LoopState.CANCELLED:
            return
        self.state = LoopState.CANCELLED
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
            self._handle = None
        logger.debug("Pipeline loop cancelled after %d ticks", self._tick_count)

    def _schedule_next(self) -> None:
        self._handle = self.scheduler.schedule(self.tick)

    def __enter__(self) -> "PipelineLoop":
        return self

    def __exit__(self, *exc) -> None:
        self.cancel()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def reset_session(self) -> None:
        """Forget the background estimate and working pixels."""
        self.estimate.reset()
        self.buffer.clear()
        logger.debug("Pipeline session reset")

    def set_source(self, source: FrameSource) -> None:
        """Bind a new frame source; starts a new session."""
        if source is self.source:
            return
        self.source = source
        self.reset_session()

    def reconfigure(self, config: Optional[PipelineConfig] = None, **changes) -> PipelineConfig:
        """
        Replace the configuration.

        A size change starts a new session; tolerance, softness and opacity
        changes keep the current background estimate.

        Returns:
            The new, validated configuration
        """
        new_config = config if config is not None else dataclasses.replace(self.config, **changes)
        new_config.validate()

        size_changed = new_config.size != self.config.size
        self.config = new_config
        self._build_stages()

        if size_changed:
            self.reset_session()
        return new_config

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def tick(self) -> TickResult:
        """
        Run one tick and schedule the next while running.

        Returns:
            TickResult describing the outcome
        """
        self._handle = None
        if self.state is not LoopState.RUNNING:
            return TickResult(TickStatus.CANCELLED, tick=self._tick_count)

        self._tick_count += 1
        try:
            result = self._process(self._tick_count)
        finally:
            # The surface may have cancelled us mid-tick
            if self.state is LoopState.RUNNING:
                self._schedule_next()

        self.history.append(result)
        return result

    def _process(self, tick: int) -> TickResult:
        self.buffer.ensure_size(self.config.size)

        try:
            frame = self.source.read()
            position = self.source.position
        except SourceNotReady as e:
            logger.debug("Tick %d: source not ready: %s", tick, e)
            return TickResult(TickStatus.SOURCE_NOT_READY, tick=tick, error=e)
        except Exception as e:
            error = DrawFailure(f"Frame source failed: {e}")
            error.__cause__ = e
            logger.debug("Tick %d: %s", tick, error)
            return TickResult(TickStatus.DRAW_FAILED, tick=tick, error=error)

        estimated = False
        sampling_error = None
        try:
            self.buffer.load(frame)

            if self.estimator.ready(self.estimate, position):
                try:
                    estimated = self.estimator.update(self.estimate, self.buffer, position)
                except SamplingFailure as e:
                    sampling_error = e
                    logger.debug("Tick %d: background sampling deferred: %s", tick, e)

            if estimated:
                logger.info(
                    "Background detected at %.3fs: %s",
                    position,
                    self.estimate.color.to_hex(),
                )

            background = self.estimate.color
            if background is not None:
                self.chroma.apply(self.buffer, background)
                self.softener.apply(self.buffer)

            self.surface.present(self.buffer, self.config.opacity)

        except Exception as e:
            if not isinstance(e, DrawFailure):
                error = DrawFailure(f"{type(e).__name__}: {e}")
                error.__cause__ = e
            else:
                error = e
            logger.debug("Tick %d: draw failed: %s", tick, error)
            return TickResult(
                TickStatus.DRAW_FAILED,
                tick=tick,
                position=position,
                background=self.estimate.color,
                estimated=estimated,
                sampling_error=sampling_error,
                error=error,
            )

        return TickResult(
            TickStatus.KEYED if background is not None else TickStatus.UNKEYED,
            tick=tick,
            position=position,
            background=background,
            estimated=estimated,
            sampling_error=sampling_error,
        )

    def stats(self) -> Dict[str, int]:
        """Tick counts per status over the retained history."""
        counts = Counter(result.status.value for result in self.history)
        return {status.value: counts.get(status.value, 0) for status in TickStatus}
