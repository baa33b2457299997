# SPDX-License-Identifier: Apache-2.0
"""OpenCV Haar cascade backend.

Landmarks are estimated from the face box using typical face proportions, so
the positions are rough; the backend needs no downloaded model.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

import cv2

from facetrace.config import ModelConfig
from facetrace.errors import ModelLoadError
from facetrace.schemas import DetectedFace, Frame, Point
from facetrace.vision.base import LandmarkDetector

DEFAULT_CASCADE = "haarcascade_frontalface_default.xml"

# (name, x fraction, y fraction) of the face box
FACE_PROPORTIONS = (
    ("left_eye", 0.30, 0.35),
    ("right_eye", 0.70, 0.35),
    ("nose_tip", 0.50, 0.55),
    ("mouth_left", 0.35, 0.75),
    ("mouth_right", 0.65, 0.75),
    ("chin", 0.50, 0.95),
    ("forehead", 0.50, 0.15),
    ("left_cheek", 0.25, 0.60),
    ("right_cheek", 0.75, 0.60),
)


def box_to_face(box: Sequence[int]) -> DetectedFace:
    x, y, w, h = (int(v) for v in box)
    return DetectedFace(
        points=tuple(Point(x + w * fx, y + h * fy) for _, fx, fy in FACE_PROPORTIONS)
    )


class HaarLandmarkDetector(LandmarkDetector):
    name = "haar"

    def __init__(self, config: ModelConfig | None = None):
        super().__init__()
        self.config = config or ModelConfig(backend="haar")
        self._cascade: Optional[cv2.CascadeClassifier] = None

    def _load(self) -> None:
        path = Path(self.config.cascade_path or Path(cv2.data.haarcascades) / DEFAULT_CASCADE)
        if not path.is_file():
            raise ModelLoadError(f"Cascade file {path} not found", source=str(path))
        cascade = cv2.CascadeClassifier(str(path))
        if cascade.empty():
            raise ModelLoadError(f"Failed to load cascade: {path}", source=str(path))
        self._cascade = cascade

    def _detect(self, frame: Frame) -> List[DetectedFace]:
        pixels = frame.pixels
        gray = cv2.cvtColor(pixels, cv2.COLOR_BGR2GRAY) if pixels.ndim == 3 else pixels
        size = self.config.min_face_size
        boxes = self._cascade.detectMultiScale(
            gray,
            scaleFactor=self.config.scale_factor,
            minNeighbors=self.config.min_neighbors,
            minSize=(size, size),
        )
        # largest faces first
        ranked = sorted(boxes, key=lambda b: int(b[2]) * int(b[3]), reverse=True)
        return [box_to_face(box) for box in ranked[: self.config.num_faces]]

    def close(self) -> None:
        self._cascade = None
        super().close()
