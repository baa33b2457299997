from __future__ import annotations

import numpy as np
import pytest

from facetrace.schemas import DetectedFace, Frame, PipelineStatus, Point
from facetrace.utils.io import read_json


def test_frame_is_read_only():
    frame = Frame(pixels=np.zeros((4, 6, 3), dtype=np.uint8), index=2, timestamp_ms=10)
    assert frame.size == (6, 4)
    with pytest.raises(ValueError):
        frame.pixels[0, 0] = 1


def test_zero_sized_frame_rejected():
    with pytest.raises(ValueError):
        Frame(pixels=np.zeros((0, 6, 3), dtype=np.uint8))


def test_point_depth_is_optional():
    assert Point(1.0, 2.0).z is None
    assert Point(1.0, 2.0, -3.0).z == -3.0


def test_face_as_array():
    face = DetectedFace(points=(Point(1, 2), Point(3, 4, 5)))
    assert len(face) == 2
    assert face.as_array().tolist() == [[1, 2], [3, 4]]
    assert DetectedFace(points=()).as_array().shape == (0, 2)


def test_status_to_json(tmp_path):
    status = PipelineStatus(
        capture_state="idle",
        recording_state="idle",
        has_artifact=False,
        frame_size=(640, 480),
    )
    path = tmp_path / "status.json"
    status.to_json(path)
    data = read_json(path)
    assert data["frame_size"] == [640, 480]
    assert data["error"] is None
