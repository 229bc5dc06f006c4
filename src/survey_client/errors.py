"""Errors raised by the photo capture and submission pipeline."""


class CaptureError(Exception):
    """Base class for camera and image processing failures."""


class DeviceUnavailable(CaptureError):
    """No video input device could be opened; use the upload-file path instead."""


class CaptureEmpty(CaptureError):
    """A frame was requested before the device delivered one."""


class EnhancementFailed(CaptureError):
    """Pixel-level enhancement failed; the unmodified frame is used."""


class SubmitError(Exception):
    """Base class for failures while externalizing a staged photo."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UploadFailed(SubmitError):
    """Object storage rejected the image payload."""


class RecordingFailed(SubmitError):
    """The metadata API rejected the record after a successful upload.

    The uploaded blob stays in storage under ``object_name``; retrying the same
    staged photo targets the same name and client uid.
    """

    def __init__(self, message, object_name, url, status_code=None):
        super().__init__(message, status_code)
        self.object_name = object_name
        self.url = url


class WizardStateError(Exception):
    """An operation was attempted in a wizard state that does not allow it."""

    def __init__(self, operation, state):
        super().__init__(f"Cannot {operation} while {state.value}")
        self.operation = operation
        self.state = state
