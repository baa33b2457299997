# SPDX-License-Identifier: Apache-2.0
"""Detector interface shared by the landmark backends."""

from __future__ import annotations

import asyncio
from typing import List

from facetrace.errors import DetectionTransientError, FacetraceError, ModelLoadError
from facetrace.logging_utils import get_logger
from facetrace.schemas import DetectedFace, Frame

LOGGER = get_logger(__name__)


class LandmarkDetector:
    """Loads a landmark model once, then maps frames to normalized faces.

    Subclasses implement the blocking ``_load`` and ``_detect`` hooks; both run
    in a worker thread so the event loop keeps serving other callbacks.
    Calls to :meth:`detect` are not serialized here.
    """

    name = "base"

    def __init__(self) -> None:
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> None:
        if self._loaded:
            return
        try:
            await asyncio.to_thread(self._load)
        except ModelLoadError:
            raise
        except Exception as exc:
            raise ModelLoadError(f"{self.name} model failed to load: {exc}") from exc
        self._loaded = True
        LOGGER.info("model loaded", backend=self.name)

    async def detect(self, frame: Frame) -> List[DetectedFace]:
        if not self._loaded:
            raise ModelLoadError(f"{self.name} model is not loaded")
        try:
            return await asyncio.to_thread(self._detect, frame)
        except FacetraceError:
            raise
        except Exception as exc:
            raise DetectionTransientError(
                f"{self.name} detection failed on frame {frame.index}: {exc}"
            ) from exc

    def close(self) -> None:
        self._loaded = False

    def _load(self) -> None:
        raise NotImplementedError

    def _detect(self, frame: Frame) -> List[DetectedFace]:
        raise NotImplementedError
