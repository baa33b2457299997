# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple, Optional, Tuple

import numpy as np
from pydantic import BaseModel

from facetrace.utils.io import write_json


class Point(NamedTuple):
    """Landmark position in frame pixel space."""

    x: float
    y: float
    z: Optional[float] = None


@dataclass(frozen=True)
class Frame:
    """One read-only pixel snapshot from a frame source."""

    pixels: np.ndarray
    index: int = 0
    timestamp_ms: int = 0

    def __post_init__(self) -> None:
        if self.pixels.ndim < 2 or self.pixels.shape[0] == 0 or self.pixels.shape[1] == 0:
            raise ValueError(f"frame must have non-zero size, got shape {self.pixels.shape}")
        self.pixels.setflags(write=False)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


@dataclass(frozen=True)
class DetectedFace:
    """Ordered landmarks of one face in one frame."""

    points: Tuple[Point, ...]
    score: Optional[float] = None

    def __len__(self) -> int:
        return len(self.points)

    def as_array(self) -> np.ndarray:
        """Return the (x, y) coordinates as an N x 2 float array."""
        if not self.points:
            return np.zeros((0, 2), dtype=np.float32)
        return np.array([(p.x, p.y) for p in self.points], dtype=np.float32)


@dataclass(frozen=True)
class RecordingArtifact:
    data: bytes
    mime_type: str
    chunk_count: int = 0

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class LoopStats:
    cycles: int = 0
    rendered: int = 0
    skipped: int = 0
    errors: int = 0
    discarded: int = 0
    last_faces: int = 0


class PipelineStatus(BaseModel):
    capture_state: str
    recording_state: str
    has_artifact: bool
    artifact_size: int = 0
    frame_size: Optional[Tuple[int, int]] = None
    cycles: int = 0
    rendered: int = 0
    skipped: int = 0
    errors: int = 0
    faces: int = 0
    error: Optional[str] = None

    def to_json(self, path: Path) -> None:
        write_json(path, self.model_dump(mode="json"))
