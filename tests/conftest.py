from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional

import numpy as np
import pytest

from facetrace.errors import DetectionTransientError, ModelLoadError, NotReadyError
from facetrace.io.camera import FrameSource
from facetrace.pipeline.encoder import StreamEncoder
from facetrace.schemas import DetectedFace, Frame, Point
from facetrace.vision.base import LandmarkDetector
from facetrace.viz.overlays import AnnotationRenderer


class FakeSource(FrameSource):
    """Serves solid frames; stops being ready after *limit* frames."""

    def __init__(self, width: int = 64, height: int = 48, limit: Optional[int] = None):
        self.width = width
        self.height = height
        self.limit = limit
        self.reads = 0
        self.opened = False

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.opened = False

    def is_ready(self) -> bool:
        return self.limit is None or self.reads < self.limit

    def current_frame(self) -> Frame:
        if not self.is_ready():
            raise NotReadyError("exhausted")
        pixels = np.full((self.height, self.width, 3), 40, dtype=np.uint8)
        frame = Frame(pixels=pixels, index=self.reads, timestamp_ms=self.reads * 33)
        self.reads += 1
        return frame


class FakeDetector(LandmarkDetector):
    name = "fake"

    def __init__(
        self,
        faces: Iterable[DetectedFace] = (),
        gate: Optional[asyncio.Event] = None,
        fail_on: Iterable[int] = (),
        load_error: Optional[str] = None,
    ):
        super().__init__()
        self.faces = list(faces)
        self.gate = gate
        self.fail_on = set(fail_on)
        self.load_error = load_error
        self.calls = 0
        self.active = 0
        self.max_active = 0

    def _load(self) -> None:
        if self.load_error:
            raise ModelLoadError(self.load_error)

    async def detect(self, frame: Frame) -> List[DetectedFace]:
        if not self.loaded:
            raise ModelLoadError("not loaded")
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if frame.index in self.fail_on:
                raise DetectionTransientError(f"boom on {frame.index}")
            return list(self.faces)
        finally:
            self.active -= 1


class CountingRenderer(AnnotationRenderer):
    def __init__(self, config=None):
        super().__init__(config)
        self.frame_calls = 0
        self.landmark_calls = 0
        self.markers = 0

    def draw_frame(self, surface, frame) -> None:
        self.frame_calls += 1
        super().draw_frame(surface, frame)

    def draw_landmarks(self, surface, faces) -> int:
        self.landmark_calls += 1
        drawn = super().draw_landmarks(surface, faces)
        self.markers += drawn
        return drawn


class FakeEncoder(StreamEncoder):
    """Chunks are pushed by the test through :meth:`deliver`; *tail* on finalize."""

    def __init__(self, config=None, tail: Iterable[bytes] = ()):
        self.config = config
        self.tail = list(tail)
        self.stream = None
        self.on_chunk = None
        self.finalized = False

    def start(self, stream, on_chunk) -> None:
        self.stream = stream
        self.on_chunk = on_chunk

    def deliver(self, chunk: bytes) -> None:
        self.on_chunk(chunk)

    async def finalize(self) -> None:
        await asyncio.sleep(0)
        for chunk in self.tail:
            self.on_chunk(chunk)
        self.finalized = True


def face_at(*coords) -> DetectedFace:
    return DetectedFace(points=tuple(Point(float(x), float(y)) for x, y in coords))


@pytest.fixture
def fake_source():
    return FakeSource


@pytest.fixture
def fake_detector():
    return FakeDetector


@pytest.fixture
def counting_renderer():
    return CountingRenderer


@pytest.fixture
def fake_encoder():
    return FakeEncoder


@pytest.fixture
def make_face():
    return face_at


@pytest.fixture
def loaded(fake_detector):
    def _loaded(*args, **kwargs) -> FakeDetector:
        detector = fake_detector(*args, **kwargs)
        asyncio.run(detector.load())
        return detector

    return _loaded
