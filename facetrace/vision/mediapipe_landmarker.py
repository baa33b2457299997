# SPDX-License-Identifier: Apache-2.0
"""MediaPipe Tasks FaceLandmarker backend (dense 478-point mesh)."""

from __future__ import annotations

from typing import Iterable, List, Optional

import cv2
import mediapipe as mp
from mediapipe.tasks import python as mp_tasks
from mediapipe.tasks.python import vision

from facetrace.config import ModelConfig
from facetrace.errors import ModelLoadError
from facetrace.schemas import DetectedFace, Frame, Point
from facetrace.vision.assets import resolve_asset
from facetrace.vision.base import LandmarkDetector


def landmarks_to_face(landmarks: Iterable, width: int, height: int) -> DetectedFace:
    """Scale normalized landmarks to frame pixels.

    MediaPipe reports ``z`` on roughly the same scale as ``x``, so depth is
    scaled by the frame width.
    """
    return DetectedFace(
        points=tuple(
            Point(lm.x * width, lm.y * height, lm.z * width) for lm in landmarks
        )
    )


class MediaPipeLandmarker(LandmarkDetector):
    name = "mediapipe"

    def __init__(self, config: ModelConfig | None = None):
        super().__init__()
        self.config = config or ModelConfig()
        self._landmarker: Optional[vision.FaceLandmarker] = None
        self._last_ts = -1

    def _load(self) -> None:
        path = resolve_asset(
            self.config.asset_path,
            self.config.asset_url,
            timeout=self.config.download_timeout_s,
        )
        options = vision.FaceLandmarkerOptions(
            base_options=mp_tasks.BaseOptions(model_asset_path=str(path)),
            running_mode=vision.RunningMode.VIDEO,
            num_faces=self.config.num_faces,
            min_face_detection_confidence=self.config.min_detection_confidence,
            min_face_presence_confidence=self.config.min_presence_confidence,
            min_tracking_confidence=self.config.min_tracking_confidence,
        )
        try:
            self._landmarker = vision.FaceLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as exc:
            raise ModelLoadError(f"Could not parse model {path}: {exc}", source=str(path)) from exc
        self._last_ts = -1

    def _detect(self, frame: Frame) -> List[DetectedFace]:
        rgb = cv2.cvtColor(frame.pixels, cv2.COLOR_BGR2RGB)
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        # VIDEO mode rejects timestamps that do not increase
        ts = max(frame.timestamp_ms, self._last_ts + 1)
        self._last_ts = ts
        result = self._landmarker.detect_for_video(image, ts)
        return [
            landmarks_to_face(face, frame.width, frame.height)
            for face in (result.face_landmarks or [])
        ]

    def close(self) -> None:
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None
        super().close()
