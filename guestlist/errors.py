"""Custom exception classes."""


class ValidationError(Exception):
    """Raised when guest input fails validation."""
    pass


class StoreError(Exception):
    """Raised when the database rejects or fails an operation."""
    pass


class CameraError(Exception):
    """Raised when the scanner cannot get hold of a camera."""

    kind = 'unknown'
    message = 'Cannot access camera.'

    def __init__(self, detail=None):
        super().__init__(detail or self.message)
        self.detail = detail


class PermissionDenied(CameraError):
    kind = 'permission_denied'
    message = 'Cannot access camera. Please check permissions.'


class DeviceNotFound(CameraError):
    kind = 'device_not_found'
    message = 'No camera found.'


class DeviceBusy(CameraError):
    kind = 'device_busy'
    message = 'Camera is in use by another application.'


class CameraUnavailable(CameraError):
    """Camera failure that could not be classified."""
    pass
