"""Tests for the capture controller device lifecycle."""
from unittest.mock import Mock

import pytest
from PIL import Image

from shared.enums import FacingMode
from src.survey_client.capture.camera import (
    CaptureController, DeviceInfo, PreviewSurface, StreamConstraints, VideoBackend
)
from src.survey_client.errors import DeviceUnavailable


class FakeStream:
    def __init__(self, backend, device, frame):
        self.backend = backend
        self.device = device
        self.frame = frame
        self.released = False

    def read(self):
        return self.frame

    def release(self):
        assert not self.released, "stream released twice"
        self.released = True
        self.backend.open_count -= 1


class FakeBackend(VideoBackend):
    """Counts open streams so leaks and double opens are visible."""

    def __init__(self, devices=None, reject=0, frame_size=(640, 480)):
        self.devices = devices if devices is not None else [
            DeviceInfo(0, FacingMode.REAR), DeviceInfo(1, FacingMode.FRONT)
        ]
        self.reject = reject
        self.frame_size = frame_size
        self.open_count = 0
        self.max_open = 0
        self.requests = []

    def enumerate_devices(self):
        return list(self.devices)

    def open_stream(self, constraints):
        self.requests.append(constraints)
        if self.reject > 0:
            self.reject -= 1
            raise DeviceUnavailable("constraints rejected")
        index = constraints.device_index if constraints.device_index is not None else self.devices[0].index
        device = next(d for d in self.devices if d.index == index)
        self.open_count += 1
        self.max_open = max(self.max_open, self.open_count)
        return FakeStream(self, device, Image.new('RGB', self.frame_size, (10, 20, 30)))


def test_open_uses_ideal_constraints_for_facing():
    backend = FakeBackend()
    camera = CaptureController(backend)

    device = camera.open(facing=FacingMode.FRONT, resolution_hint=(1920, 1080))

    assert device.index == 1
    assert backend.requests == [StreamConstraints(device_index=1, facing=FacingMode.FRONT, width=1920, height=1080)]
    assert camera.is_open


def test_open_falls_back_to_basic_constraints():
    backend = FakeBackend(reject=1)
    camera = CaptureController(backend)

    camera.open()

    assert len(backend.requests) == 2
    assert backend.requests[1].is_basic
    assert backend.open_count == 1


def test_fallback_records_facing_of_opened_device():
    backend = FakeBackend(reject=1)
    camera = CaptureController(backend)

    camera.open(facing=FacingMode.FRONT)
    assert camera.device.facing is FacingMode.REAR
    assert camera.facing is FacingMode.REAR

    assert camera.switch_facing() is FacingMode.FRONT
    assert camera.device.index == 1
    assert backend.open_count == 1


def test_open_fails_after_ideal_and_basic_rejected():
    backend = FakeBackend(reject=2)
    camera = CaptureController(backend)

    with pytest.raises(DeviceUnavailable):
        camera.open()

    assert len(backend.requests) == 2
    assert backend.open_count == 0
    assert not camera.is_open


def test_open_without_devices():
    with pytest.raises(DeviceUnavailable):
        CaptureController(FakeBackend(devices=[])).open()


def test_reopen_closes_previous_stream():
    backend = FakeBackend()
    camera = CaptureController(backend)

    for _ in range(3):
        camera.open()

    assert backend.open_count == 1
    assert backend.max_open == 1


def test_capture_frame_clamps_and_converts():
    camera = CaptureController(FakeBackend(frame_size=(4000, 3000)), max_dimension=1000)
    camera.open()

    frame = camera.capture_frame()

    assert frame.mode == 'RGBA'
    assert frame.size == (1000, 750)


def test_capture_frame_before_open_returns_none():
    assert CaptureController(FakeBackend()).capture_frame() is None


def test_capture_frame_when_device_returns_nothing():
    backend = FakeBackend()
    camera = CaptureController(backend)
    camera.open()
    camera._stream.frame = None
    assert camera.capture_frame() is None


def test_switch_facing_toggles_and_reopens():
    backend = FakeBackend()
    camera = CaptureController(backend)
    camera.open(facing=FacingMode.REAR)

    assert camera.switch_facing() == FacingMode.FRONT
    assert camera.device.index == 1
    assert backend.open_count == 1
    assert backend.max_open == 1


def test_switch_facing_with_single_device_keeps_stream():
    backend = FakeBackend(devices=[DeviceInfo(0, FacingMode.REAR)])
    camera = CaptureController(backend)
    camera.open()
    stream = camera._stream

    assert camera.switch_facing() == FacingMode.REAR
    assert camera._stream is stream
    assert len(backend.requests) == 1


def test_close_is_idempotent_and_detaches_surface():
    backend = FakeBackend()
    surface = Mock(spec=PreviewSurface)
    camera = CaptureController(backend)
    camera.open(surface)
    surface.attach.assert_called_once()

    camera.close()
    camera.close()

    surface.detach.assert_called_once()
    assert backend.open_count == 0
    assert not camera.is_open


def test_context_manager_releases_on_error():
    backend = FakeBackend()
    with pytest.raises(RuntimeError):
        with CaptureController(backend) as camera:
            camera.open()
            raise RuntimeError("navigation away")
    assert backend.open_count == 0
