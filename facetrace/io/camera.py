# SPDX-License-Identifier: Apache-2.0
"""Camera frame source backed by OpenCV."""

from __future__ import annotations

import time
from typing import Optional

import cv2
import numpy as np

from facetrace.config import CameraConfig
from facetrace.errors import CameraUnavailableError, NotReadyError
from facetrace.logging_utils import get_logger
from facetrace.schemas import Frame

LOGGER = get_logger(__name__)


class FrameSource:
    """Pollable source of the latest frame."""

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    def is_ready(self) -> bool:
        raise NotImplementedError

    def current_frame(self) -> Frame:
        raise NotImplementedError


def _device_arg(device: int | str) -> int | str:
    # "0" from env/YAML means a device index, not a file name
    if isinstance(device, str) and device.isdigit():
        return int(device)
    return device


class CameraSource(FrameSource):
    """Wraps ``cv2.VideoCapture``; no buffering, every read is the newest frame."""

    def __init__(self, config: CameraConfig | None = None):
        self.config = config or CameraConfig()
        self._capture: Optional[cv2.VideoCapture] = None
        self._ready = False
        self._index = 0
        self._last_ts = -1
        self._t0 = time.monotonic()

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    def open(self) -> None:
        if self._capture is not None:
            return
        device = _device_arg(self.config.device)
        capture = cv2.VideoCapture(device)
        if not capture.isOpened():
            capture.release()
            raise CameraUnavailableError(
                f"Could not open camera {device!r}; check that it is connected "
                "and that access is permitted",
                device=device,
            )
        if self.config.width:
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
        if self.config.height:
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
        self._capture = capture
        self._ready = False
        self._index = 0
        self._t0 = time.monotonic()
        LOGGER.info("camera opened", device=device)

    def close(self) -> None:
        if self._capture is None:
            return
        self._capture.release()
        self._capture = None
        self._ready = False
        LOGGER.info("camera closed")

    def is_ready(self) -> bool:
        if self._ready:
            return True
        if self._capture is None:
            return False
        # the device is ready once it has delivered one frame
        self._ready = bool(self._capture.grab())
        return self._ready

    def current_frame(self) -> Frame:
        if not self._ready or self._capture is None:
            raise NotReadyError("camera has not produced a frame yet")
        ok, pixels = self._capture.read()
        if not ok or pixels is None or pixels.size == 0:
            raise NotReadyError("camera returned no frame")
        return self._make_frame(pixels)

    def _make_frame(self, pixels: np.ndarray) -> Frame:
        if self.config.mirror:
            pixels = cv2.flip(pixels, 1)
        ts = int((time.monotonic() - self._t0) * 1000)
        if ts <= self._last_ts:
            ts = self._last_ts + 1
        self._last_ts = ts
        frame = Frame(pixels=pixels, index=self._index, timestamp_ms=ts)
        self._index += 1
        return frame

    def __enter__(self) -> "CameraSource":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()
