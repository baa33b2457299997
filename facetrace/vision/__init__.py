# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from facetrace.config import ModelConfig
from facetrace.vision.base import LandmarkDetector


def build_detector(config: ModelConfig) -> LandmarkDetector:
    """Return the landmark backend named by ``config.backend``."""
    if config.backend == "haar":
        from facetrace.vision.haar import HaarLandmarkDetector

        return HaarLandmarkDetector(config)
    if config.backend == "mediapipe":
        from facetrace.vision.mediapipe_landmarker import MediaPipeLandmarker

        return MediaPipeLandmarker(config)
    raise ValueError(f"Unknown landmark backend: {config.backend}")


__all__ = ["LandmarkDetector", "build_detector"]
