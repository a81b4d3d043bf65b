"""
Door scanner loop.

A ``ScanLoop`` owns one camera while it runs and polls it one frame per
tick, handing the first decoded payload to ``on_payload`` (normally the
check-in resolver). States::

    IDLE -> REQUESTING -> ACTIVE -> DECODED -> (ACTIVE | STOPPED)
                      \\-> FAILED

Rules the loop keeps:
- no tick is scheduled while a payload is being resolved, and a tick that
  fires anyway while DECODED is dropped;
- ``stop()`` clears the liveness flag, cancels every pending scheduler
  handle and releases the camera before returning;
- only one loop holds the camera at a time; starting a new one
  force-stops the previous owner.

Ticks run on scheduler threads, so logging goes through the module logger
rather than ``current_app``.
"""

import enum
import logging
import threading
from typing import Callable, Optional

from guestlist.errors import CameraError, CameraUnavailable

logger = logging.getLogger(__name__)

# One decode attempt per display refresh is plenty
FRAME_INTERVAL = 1 / 30

_camera_lock = threading.Lock()
_camera_owner = None


class ScanState(enum.Enum):
    IDLE = 'idle'
    REQUESTING = 'requesting'
    ACTIVE = 'active'
    DECODED = 'decoded'
    STOPPED = 'stopped'
    FAILED = 'failed'


class TimerScheduler:
    """Runs callbacks on daemon ``threading.Timer`` threads.

    ``schedule`` returns the timer itself; its ``cancel()`` guarantees the
    callback will not run if the timer has not fired yet.
    """

    def __init__(self, interval: float = FRAME_INTERVAL):
        self.interval = interval

    def schedule(self, callback: Callable, delay: Optional[float] = None):
        timer = threading.Timer(self.interval if delay is None else delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class ScanLoop:
    """Cancellable frame-polling loop bound to a single camera."""

    def __init__(self, open_camera: Callable, decoder, on_payload: Callable[[str], bool],
                 scheduler=None, result_delay: float = 2.0):
        """
        Args:
            open_camera: returns an opened camera with ``read_frame()`` and
                ``release()``; raises ``CameraError`` when access fails
            decoder: object with ``decode(frame) -> str | None``
            on_payload: called with each decoded payload; return True when
                scanning is done (the loop then stops after ``result_delay``)
                or False to keep scanning
            scheduler: object with ``schedule(callback, delay=None)``
                returning a handle with ``cancel()``
            result_delay: seconds the result stays up before the loop stops
        """
        self._open_camera = open_camera
        self._decoder = decoder
        self._on_payload = on_payload
        self._scheduler = scheduler or TimerScheduler()
        self.result_delay = result_delay

        self.state = ScanState.IDLE
        self.last_error = None
        self._camera = None
        self._live = False
        self._tick_handle = None
        self._stop_handle = None
        self._lock = threading.RLock()
        self._stopped = threading.Event()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False

    @property
    def is_running(self) -> bool:
        return self.state in (ScanState.REQUESTING, ScanState.ACTIVE, ScanState.DECODED)

    def start(self):
        """Acquire the camera and begin polling.

        Raises:
            CameraError: the camera could not be opened; the loop is left
                FAILED and can be started again later
        """
        global _camera_owner

        with _camera_lock:
            previous = _camera_owner
        if previous is not None and previous is not self:
            logger.info("Releasing camera held by a previous scanner")
            previous.stop()

        with self._lock:
            if self.is_running:
                return
            self.state = ScanState.REQUESTING
            self.last_error = None
            self._stopped.clear()

            try:
                self._camera = self._open_camera()
            except CameraError as e:
                self._fail(e)
                raise
            except Exception as e:
                error = CameraUnavailable(str(e))
                self._fail(error)
                raise error from e

            with _camera_lock:
                _camera_owner = self
            self.state = ScanState.ACTIVE
            self._live = True
            logger.info("Scanner started")
            self._schedule_tick()

    def stop(self):
        """Stop polling and release the camera. Safe to call repeatedly."""
        global _camera_owner

        with self._lock:
            self._live = False
            for handle in (self._tick_handle, self._stop_handle):
                if handle is not None:
                    handle.cancel()
            self._tick_handle = None
            self._stop_handle = None

            camera, self._camera = self._camera, None
            try:
                if camera is not None:
                    camera.release()
                    logger.info("Scanner stopped, camera released")
            finally:
                with _camera_lock:
                    if _camera_owner is self:
                        _camera_owner = None
                if self.state is not ScanState.FAILED:
                    self.state = ScanState.STOPPED
                self._stopped.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the loop stops; returns False on timeout."""
        return self._stopped.wait(timeout)

    def _fail(self, error: CameraError):
        self.state = ScanState.FAILED
        self.last_error = error
        self._camera = None
        self._stopped.set()
        logger.warning(f"Camera unavailable ({error.kind}): {error}")

    def _schedule_tick(self):
        # Caller holds self._lock
        if not self._live or self.state is not ScanState.ACTIVE:
            return
        self._tick_handle = self._scheduler.schedule(self._tick)

    def _tick(self):
        with self._lock:
            self._tick_handle = None
            if not self._live or self.state is not ScanState.ACTIVE:
                return

            try:
                frame = self._camera.read_frame()
                payload = self._decoder.decode(frame) if frame is not None else None
            except Exception as e:
                # A bad frame is skipped like an empty one
                logger.debug(f"Frame skipped: {e}")
                payload = None

            if not payload:
                self._schedule_tick()
                return

            self.state = ScanState.DECODED

        self._handle_payload(payload)

    def _handle_payload(self, payload: str):
        try:
            finished = bool(self._on_payload(payload))
        except Exception as e:
            logger.exception("Check-in failed for scanned code, resuming scan")
            self.last_error = e
            finished = False

        with self._lock:
            if not self._live or self.state is not ScanState.DECODED:
                return
            if finished:
                self._stop_handle = self._scheduler.schedule(self.stop, self.result_delay)
            else:
                self.state = ScanState.ACTIVE
                self._schedule_tick()
