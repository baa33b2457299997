# SPDX-License-Identifier: Apache-2.0
"""Drawable canvas that can also be tapped as a live stream."""

from __future__ import annotations

import cv2
import numpy as np

from facetrace.errors import UnsupportedStreamError


class Surface:
    """Double-buffered BGR canvas.

    Drawing goes to the back buffer (:attr:`pixels`); :meth:`commit` publishes
    it, and readers such as streams only ever see committed images.
    """

    def __init__(self, width: int = 0, height: int = 0):
        self._back = np.zeros((height, width, 3), dtype=np.uint8)
        self._front = self._back.copy()

    @property
    def width(self) -> int:
        return int(self._back.shape[1])

    @property
    def height(self) -> int:
        return int(self._back.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def pixels(self) -> np.ndarray:
        return self._back

    def resize(self, width: int, height: int) -> bool:
        """Match the canvas to *width* x *height*; returns True when it changed."""
        if (width, height) == self.size:
            return False
        self._back = np.zeros((height, width, 3), dtype=np.uint8)
        return True

    def clear(self) -> None:
        self._back[:] = 0

    def commit(self) -> None:
        self._front = self._back.copy()

    def snapshot(self) -> np.ndarray:
        return self._front.copy()

    def capture_stream(self, fps: float) -> "SurfaceStream":
        if fps <= 0:
            raise UnsupportedStreamError(f"Stream frame rate must be positive, got {fps}")
        # yuv420p encoders need even dimensions
        width, height = self.width - self.width % 2, self.height - self.height % 2
        if width == 0 or height == 0:
            raise UnsupportedStreamError(
                f"Surface of size {self.width}x{self.height} cannot be captured"
            )
        return SurfaceStream(self, fps, width, height)


class SurfaceStream:
    """Fixed-size, fixed-rate view of a surface's committed image."""

    def __init__(self, surface: Surface, fps: float, width: int, height: int):
        self.surface = surface
        self.fps = fps
        self.width = width
        self.height = height

    def read(self) -> np.ndarray:
        image = self.surface.snapshot()
        if image.size == 0:
            return np.zeros((self.height, self.width, 3), dtype=np.uint8)
        if image.shape[:2] != (self.height, self.width):
            image = cv2.resize(image, (self.width, self.height))
        return image
