# SPDX-License-Identifier: Apache-2.0
"""Live WebM encoding of a surface stream with PyAV."""

from __future__ import annotations

import asyncio
from fractions import Fraction
from typing import Callable, Optional

import av
from av.error import FFmpegError
import numpy as np

from facetrace.config import RecordingConfig
from facetrace.errors import RecordingError, UnsupportedStreamError
from facetrace.logging_utils import get_logger
from facetrace.viz.surface import SurfaceStream

LOGGER = get_logger(__name__)

ChunkCallback = Callable[[bytes], None]


class ChunkSink:
    """Write-only file object; every muxer write is pushed out as a chunk.

    Having no ``seek``/``tell`` makes the muxer treat the output as a live,
    non-seekable stream.
    """

    def __init__(self, on_chunk: ChunkCallback):
        self.on_chunk = on_chunk

    def write(self, data) -> int:
        chunk = bytes(data)
        if chunk:
            self.on_chunk(chunk)
        return len(chunk)


class StreamEncoder:
    """Turns a surface stream into encoded chunks delivered to a callback."""

    failure: Optional[BaseException] = None

    def start(self, stream: SurfaceStream, on_chunk: ChunkCallback) -> None:
        raise NotImplementedError

    async def finalize(self) -> None:
        """Stop sampling and flush every pending chunk."""
        raise NotImplementedError


class WebmEncoder(StreamEncoder):
    def __init__(self, config: RecordingConfig | None = None):
        self.config = config or RecordingConfig()
        self._container = None
        self._video = None
        self._stream: Optional[SurfaceStream] = None
        self._sampler: Optional[asyncio.Task] = None
        self._frames = 0
        self._last_pts = -1
        self._time_base = Fraction(1, 30)

    @property
    def frames_encoded(self) -> int:
        return self._frames

    def start(self, stream: SurfaceStream, on_chunk: ChunkCallback) -> None:
        rate = Fraction(stream.fps).limit_denominator(1000)
        try:
            container = av.open(ChunkSink(on_chunk), mode="w", format=self.config.container)
            video = container.add_stream(
                self.config.codec,
                rate=rate,
                options={"deadline": "realtime", "cpu-used": "8"},
            )
            video.width = stream.width
            video.height = stream.height
            video.pix_fmt = "yuv420p"
            video.codec_context.bit_rate = self.config.bit_rate
        except (FFmpegError, ValueError) as exc:
            raise UnsupportedStreamError(
                f"Cannot encode {stream.width}x{stream.height} as "
                f"{self.config.container}/{self.config.codec}: {exc}"
            ) from exc
        self._container = container
        self._video = video
        self._time_base = Fraction(1) / rate
        self._stream = stream
        self._frames = 0
        self._last_pts = -1
        self.failure = None
        self._sampler = asyncio.get_running_loop().create_task(self._sample())
        LOGGER.info("encoder started", width=stream.width, height=stream.height, fps=stream.fps)

    async def _sample(self) -> None:
        loop = asyncio.get_running_loop()
        fps = self._stream.fps
        t0 = loop.time()
        while True:
            pts = int((loop.time() - t0) * fps)
            if pts > self._last_pts:
                try:
                    self._encode(self._stream.read(), pts)
                except FFmpegError as exc:
                    self.failure = exc
                    LOGGER.exception("encoding failed; sampling stopped")
                    return
            await asyncio.sleep(1.0 / fps)

    def _encode(self, image: np.ndarray, pts: int) -> None:
        frame = av.VideoFrame.from_ndarray(np.ascontiguousarray(image), format="bgr24")
        frame.pts = pts
        frame.time_base = self._time_base
        for packet in self._video.encode(frame):
            self._container.mux(packet)
        self._last_pts = pts
        self._frames += 1

    async def finalize(self) -> None:
        if self._container is None:
            return
        if self._sampler is not None:
            self._sampler.cancel()
            try:
                await self._sampler
            except asyncio.CancelledError:
                pass
            self._sampler = None
        container = self._container
        try:
            try:
                if self._frames == 0 and self.failure is None:
                    # a playable file needs at least one frame
                    self._encode(self._stream.read(), 0)
                for packet in self._video.encode(None):
                    container.mux(packet)
            finally:
                container.close()
        except FFmpegError as exc:
            raise RecordingError(f"Cannot finalize recording: {exc}") from exc
        finally:
            self._container = None
            self._video = None
        if self.failure is not None:
            raise RecordingError(f"Encoding stopped early: {self.failure}") from self.failure
        LOGGER.info("encoder finalized", frames=self._frames)
