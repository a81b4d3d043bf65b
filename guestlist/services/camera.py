"""
OpenCV adapters for the door scanner.

- ``OpenCVCamera`` wraps ``cv2.VideoCapture`` and turns "could not open"
  into a classified ``CameraError``.
- ``OpenCVQRDecoder`` wraps ``cv2.QRCodeDetector``. Blurred, partial or
  otherwise unreadable frames decode to None instead of raising; most
  frames off a live camera have no readable code in them.
"""

import logging
import os
import sys
from typing import Optional

import cv2
import numpy as np

from guestlist.errors import CameraUnavailable, DeviceBusy, DeviceNotFound, PermissionDenied

logger = logging.getLogger(__name__)


def classify_camera_failure(device_index: int, device_root: str = '/dev'):
    """Best guess at why ``VideoCapture(device_index)`` did not open.

    Only Linux exposes cameras as ``/dev/videoN`` nodes; elsewhere the
    failure stays unclassified.
    """
    if not sys.platform.startswith('linux'):
        return CameraUnavailable(f'Camera {device_index} could not be opened')

    path = os.path.join(device_root, f'video{device_index}')
    if not os.path.exists(path):
        return DeviceNotFound(f'{path} does not exist')
    if not os.access(path, os.R_OK | os.W_OK):
        return PermissionDenied(f'No read/write access to {path}')
    return DeviceBusy(f'{path} could not be opened')


class OpenCVCamera:
    """Live video source backed by ``cv2.VideoCapture``."""

    def __init__(self, device_index: int = 0, width: int = 1280, height: int = 720):
        self.device_index = device_index
        self.width = width
        self.height = height
        self._capture = None

    def open(self) -> 'OpenCVCamera':
        capture = cv2.VideoCapture(self.device_index)
        if not capture.isOpened():
            capture.release()
            raise classify_camera_failure(self.device_index)

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._capture = capture
        logger.info(f"Opened camera {self.device_index}")
        return self

    def read_frame(self) -> Optional[np.ndarray]:
        """Current frame, or None if the camera has not produced one yet."""
        if self._capture is None:
            return None
        ok, frame = self._capture.read()
        if not ok or frame is None or frame.size == 0:
            return None
        return frame

    def release(self):
        if self._capture is not None:
            self._capture.release()
            self._capture = None


class OpenCVQRDecoder:
    """QR payload extraction from BGR / grayscale pixel buffers."""

    def __init__(self):
        self._detector = cv2.QRCodeDetector()

    def decode(self, frame) -> Optional[str]:
        if frame is None or getattr(frame, 'size', 0) == 0:
            return None
        try:
            data, points, _ = self._detector.detectAndDecode(frame)
        except cv2.error as e:
            logger.debug(f"Frame could not be decoded: {e}")
            return None
        if data and points is not None:
            return data
        return None

    def decode_image_bytes(self, content: bytes) -> Optional[str]:
        """Decode an uploaded still image (JPEG/PNG bytes)."""
        if not content:
            return None
        nparr = np.frombuffer(content, np.uint8)
        image = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        if image is None:
            return None
        return self.decode(image)
