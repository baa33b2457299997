# SPDX-License-Identifier: Apache-2.0
"""Frame and landmark drawing onto surfaces."""

from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np

from facetrace.config import RenderConfig
from facetrace.schemas import DetectedFace, Frame
from facetrace.viz.surface import Surface


class AnnotationRenderer:
    """Stateless drawing helpers; only the style settings are kept."""

    def __init__(self, config: RenderConfig | None = None):
        self.config = config or RenderConfig()

    def clear(self, surface: Surface) -> None:
        surface.clear()

    def draw_frame(self, surface: Surface, frame: Frame) -> None:
        """Blit *frame* at (0, 0), scaled to the surface size."""
        pixels = frame.pixels
        if pixels.ndim == 2:
            pixels = cv2.cvtColor(pixels, cv2.COLOR_GRAY2BGR)
        if (frame.width, frame.height) != surface.size:
            pixels = cv2.resize(pixels, surface.size)
        np.copyto(surface.pixels, pixels)

    def draw_landmarks(self, surface: Surface, faces: Sequence[DetectedFace]) -> int:
        """Draw *faces* and return the number of markers or outlines drawn."""
        if self.config.style == "outline":
            return sum(self._draw_outline(surface, face) for face in faces)
        return sum(self._draw_points(surface, face) for face in faces)

    def _draw_points(self, surface: Surface, face: DetectedFace) -> int:
        canvas = surface.pixels
        for point in face.points:
            center = (int(round(point.x)), int(round(point.y)))
            cv2.circle(
                canvas,
                center,
                self.config.marker_radius,
                self.config.color,
                -1,
                cv2.LINE_AA,
            )
        return len(face.points)

    def _draw_outline(self, surface: Surface, face: DetectedFace) -> int:
        if not face.points:
            return 0
        pts = np.round(face.as_array()).astype(np.int32)
        hull = cv2.convexHull(pts)
        cv2.polylines(
            surface.pixels,
            [hull],
            True,
            self.config.color,
            self.config.thickness,
            cv2.LINE_AA,
        )
        return 1
