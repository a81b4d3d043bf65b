"""Tests for the OpenCV camera and QR decoder adapters."""
import sys

import cv2
import numpy as np
import pytest

from guestlist.errors import CameraError, DeviceBusy, DeviceNotFound, PermissionDenied
from guestlist.services import camera as camera_module
from guestlist.services.camera import OpenCVCamera, OpenCVQRDecoder, classify_camera_failure
from guestlist.services.qr_image import render_qr_png

linux_only = pytest.mark.skipif(not sys.platform.startswith('linux'), reason='uses /dev/videoN nodes')


@pytest.fixture
def decoder():
    return OpenCVQRDecoder()


class TestDecoder:

    def test_decodes_rendered_credential(self, decoder):
        credential = 'RSVP-1f3a9c2e-1767225600000-Zx8kQ2mN4pL7vR1tY6wB3g'
        assert decoder.decode_image_bytes(render_qr_png(credential)) == credential

    def test_blank_frame_is_not_found(self, decoder):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        assert decoder.decode(frame) is None

    def test_noise_frame_is_not_found(self, decoder):
        rng = np.random.default_rng(42)
        frame = rng.integers(0, 256, size=(240, 320, 3), dtype=np.uint8)
        assert decoder.decode(frame) is None

    @pytest.mark.parametrize('frame', [None, np.zeros((0, 0, 3), dtype=np.uint8)])
    def test_empty_frame_is_not_found(self, decoder, frame):
        assert decoder.decode(frame) is None

    @pytest.mark.parametrize('content', [b'', b'definitely not an image'])
    def test_bad_upload_is_not_found(self, decoder, content):
        assert decoder.decode_image_bytes(content) is None

    def test_opencv_error_is_not_found(self, decoder):
        class ExplodingDetector:
            def detectAndDecode(self, frame):
                raise cv2.error('bad frame')

        decoder._detector = ExplodingDetector()
        assert decoder.decode(np.zeros((10, 10, 3), dtype=np.uint8)) is None


@linux_only
class TestClassifyCameraFailure:

    def test_missing_device(self, tmp_path):
        assert isinstance(classify_camera_failure(3, device_root=str(tmp_path)), DeviceNotFound)

    def test_unreadable_device(self, tmp_path, monkeypatch):
        (tmp_path / 'video0').touch()
        monkeypatch.setattr(camera_module.os, 'access', lambda path, mode: False)
        assert isinstance(classify_camera_failure(0, device_root=str(tmp_path)), PermissionDenied)

    def test_present_but_not_openable(self, tmp_path):
        (tmp_path / 'video0').touch()
        assert isinstance(classify_camera_failure(0, device_root=str(tmp_path)), DeviceBusy)


class FakeCapture:
    opened = True
    frame = np.full((4, 4, 3), 255, dtype=np.uint8)

    def __init__(self, index):
        self.index = index
        self.released = False
        self.props = {}

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value

    def read(self):
        return (self.frame is not None), self.frame

    def release(self):
        self.released = True


class TestOpenCVCamera:

    def test_open_read_release(self, monkeypatch):
        monkeypatch.setattr(camera_module.cv2, 'VideoCapture', FakeCapture)

        camera = OpenCVCamera(0).open()
        capture = camera._capture

        assert camera.read_frame().shape == (4, 4, 3)
        camera.release()
        assert capture.released
        assert camera.read_frame() is None

    def test_open_failure_is_classified(self, monkeypatch):
        class ClosedCapture(FakeCapture):
            opened = False

        monkeypatch.setattr(camera_module.cv2, 'VideoCapture', ClosedCapture)

        with pytest.raises(CameraError):
            OpenCVCamera(99).open()

    def test_frame_not_ready(self, monkeypatch):
        class WarmingUpCapture(FakeCapture):
            frame = None

        monkeypatch.setattr(camera_module.cv2, 'VideoCapture', WarmingUpCapture)
        assert OpenCVCamera(0).open().read_frame() is None
