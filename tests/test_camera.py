from __future__ import annotations

import numpy as np
import pytest

from facetrace.config import CameraConfig
from facetrace.errors import CameraUnavailableError, NotReadyError
from facetrace.io import camera as camera_module
from facetrace.io.camera import CameraSource


class FakeCapture:
    instances: list = []

    def __init__(self, device, opened=True, frames=3):
        self.device = device
        self.opened = opened
        self.frames = frames
        self.released = False
        self.props = {}
        FakeCapture.instances.append(self)

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def grab(self):
        return self.frames > 0

    def read(self):
        if self.frames <= 0:
            return False, None
        self.frames -= 1
        pixels = np.zeros((4, 6, 3), dtype=np.uint8)
        pixels[:, 0] = 255
        return True, pixels

    def release(self):
        self.released = True


@pytest.fixture
def capture(monkeypatch):
    FakeCapture.instances = []

    def install(**kwargs):
        monkeypatch.setattr(
            camera_module.cv2, "VideoCapture", lambda device: FakeCapture(device, **kwargs)
        )
        return FakeCapture

    return install


def test_frame_before_ready_raises(capture):
    capture()
    source = CameraSource()
    assert not source.is_ready()
    with pytest.raises(NotReadyError):
        source.current_frame()
    source.open()
    with pytest.raises(NotReadyError):
        source.current_frame()


def test_open_failure_is_reported(capture):
    fake = capture(opened=False)
    source = CameraSource(CameraConfig(device=3))
    with pytest.raises(CameraUnavailableError) as info:
        source.open()
    assert info.value.device == 3
    assert fake.instances[0].released
    assert not source.is_open


def test_frames_have_increasing_index_and_time(capture):
    capture(frames=5)
    with CameraSource() as source:
        assert source.is_ready()
        frames = [source.current_frame() for _ in range(3)]
    assert [f.index for f in frames] == [0, 1, 2]
    stamps = [f.timestamp_ms for f in frames]
    assert stamps == sorted(set(stamps))
    assert frames[0].size == (6, 4)
    assert not source.is_ready()


def test_never_ready_without_frames(capture):
    capture(frames=0)
    source = CameraSource()
    source.open()
    assert not source.is_ready()


def test_failed_read_after_ready_raises(capture):
    capture(frames=1)
    source = CameraSource()
    source.open()
    assert source.is_ready()
    source.current_frame()
    with pytest.raises(NotReadyError):
        source.current_frame()


def test_mirror_and_resolution(capture):
    fake = capture()
    source = CameraSource(CameraConfig(mirror=True, width=1280, height=720))
    source.open()
    source.is_ready()
    frame = source.current_frame()
    assert frame.pixels[0, -1].tolist() == [255, 255, 255]
    assert frame.pixels[0, 0].tolist() == [0, 0, 0]
    props = fake.instances[0].props
    assert props[camera_module.cv2.CAP_PROP_FRAME_WIDTH] == 1280
    assert props[camera_module.cv2.CAP_PROP_FRAME_HEIGHT] == 720


def test_numeric_device_string_is_an_index(capture):
    fake = capture()
    CameraSource(CameraConfig(device="1")).open()
    assert fake.instances[0].device == 1


def test_close_is_idempotent(capture):
    fake = capture()
    source = CameraSource()
    source.open()
    source.close()
    source.close()
    assert fake.instances[0].released
    assert not source.is_ready()
