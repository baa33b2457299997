# SPDX-License-Identifier: Apache-2.0
"""Repeating capture → detect → render cycle."""

from __future__ import annotations

import asyncio
import enum
from typing import Optional

from facetrace.config import LoopConfig
from facetrace.errors import DetectionTransientError, ModelLoadError, NotReadyError
from facetrace.io.camera import FrameSource
from facetrace.logging_utils import get_logger
from facetrace.schemas import LoopStats
from facetrace.vision.base import LandmarkDetector
from facetrace.viz.overlays import AnnotationRenderer
from facetrace.viz.surface import Surface

LOGGER = get_logger(__name__)


class LoopState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


class CaptureLoop:
    """Drives one surface from a frame source and a detector.

    Cycles never overlap: a tick that fires while the previous cycle is still
    reading the camera or waiting on the detector is skipped. After
    :meth:`stop`, an in-flight cycle is left to finish but its result is
    never drawn.
    """

    def __init__(
        self,
        source: FrameSource,
        detector: LandmarkDetector,
        renderer: AnnotationRenderer,
        surface: Surface,
        config: LoopConfig | None = None,
        draw_frame: bool = True,
    ):
        self.source = source
        self.detector = detector
        self.renderer = renderer
        self.surface = surface
        self.config = config or LoopConfig()
        self.draw_frame = draw_frame
        self.stats = LoopStats()
        self._state = LoopState.IDLE
        self._generation = 0
        self._ticker: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is LoopState.RUNNING

    def start(self) -> None:
        if self.running:
            return
        if not self.detector.loaded:
            raise ModelLoadError("Landmark model must be loaded before capture starts")
        self._generation += 1
        self._state = LoopState.RUNNING
        self._ticker = asyncio.get_running_loop().create_task(self._tick(self._generation))
        LOGGER.info("capture started", period_s=self.config.period_s)

    def stop(self) -> None:
        if not self.running:
            return
        self._state = LoopState.IDLE
        self._generation += 1
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        LOGGER.info("capture stopped", **vars(self.stats))

    async def wait_idle(self) -> None:
        """Wait for an in-flight cycle left over from :meth:`stop` to finish."""
        if self._inflight is not None and not self._inflight.done():
            await asyncio.wait({self._inflight})

    async def _tick(self, generation: int) -> None:
        loop = asyncio.get_running_loop()
        period = self.config.period_s
        next_at = loop.time()
        while generation == self._generation:
            if self._inflight is None or self._inflight.done():
                self._inflight = loop.create_task(self.run_cycle(generation))
            else:
                self.stats.skipped += 1
                LOGGER.debug("cycle skipped", reason="cycle in flight")
            next_at += period
            now = loop.time()
            if next_at < now:
                # fell behind; restart the schedule instead of bursting
                next_at = now
            await asyncio.sleep(next_at - now)

    def _current(self, generation: int) -> bool:
        return self.running and generation == self._generation

    async def run_cycle(self, generation: Optional[int] = None) -> bool:
        """Run one cycle; returns True when landmarks were rendered."""
        generation = self._generation if generation is None else generation
        if not self._current(generation):
            return False
        self.stats.cycles += 1
        try:
            # device reads block for up to a frame period
            if not await asyncio.to_thread(self.source.is_ready):
                return False
            frame = await asyncio.to_thread(self.source.current_frame)
            if not self._current(generation):
                self.stats.discarded += 1
                return False
            if self.surface.resize(frame.width, frame.height):
                LOGGER.info("surface resized", width=frame.width, height=frame.height)
            if self.draw_frame:
                self.renderer.draw_frame(self.surface, frame)
            else:
                self.renderer.clear(self.surface)

            faces = await self.detector.detect(frame)
            if not self._current(generation):
                self.stats.discarded += 1
                LOGGER.debug("detection discarded", frame=frame.index)
                return False

            self.renderer.draw_landmarks(self.surface, faces)
            self.surface.commit()
            self.stats.rendered += 1
            self.stats.last_faces = len(faces)
            return True
        except NotReadyError as exc:
            LOGGER.debug("frame not ready", error=str(exc))
        except DetectionTransientError as exc:
            self.stats.errors += 1
            LOGGER.warning("detection failed; frame skipped", error=str(exc))
        except Exception:
            self.stats.errors += 1
            LOGGER.exception("capture cycle failed")
        return False
