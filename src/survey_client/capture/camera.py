"""Camera device lifecycle and single-frame capture."""
from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging

import cv2
from PIL import Image

from shared.enums import FacingMode
from shared.utils import fit_within
from ..errors import DeviceUnavailable

logger = logging.getLogger(__name__)

DEFAULT_MAX_DIMENSION = 1920
DEFAULT_RESOLUTION_HINT = (1280, 720)


@dataclass(frozen=True)
class DeviceInfo:
    index: int
    facing: FacingMode
    label: str = ''


@dataclass(frozen=True)
class StreamConstraints:
    """Requested stream properties; None leaves the choice to the device."""
    device_index: Optional[int] = None
    facing: Optional[FacingMode] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def is_basic(self):
        return self.device_index is None and self.width is None and self.height is None


class VideoBackend:
    """Interface to a platform video source.

    ``enumerate_devices()`` lists the physical cameras. ``open_stream()``
    returns a stream object with ``read()`` (an RGB ``PIL.Image`` or None),
    ``release()`` and a ``device`` attribute, and raises ``DeviceUnavailable``
    when the constraints cannot be satisfied.
    """

    def enumerate_devices(self) -> List[DeviceInfo]:
        raise NotImplementedError

    def open_stream(self, constraints: StreamConstraints):
        raise NotImplementedError


class PreviewSurface:
    """Live preview target; UI layers subclass this to render frames."""

    def attach(self, stream):
        pass

    def detach(self):
        pass


class OpenCVStream:
    def __init__(self, capture, device):
        self.capture = capture
        self.device = device

    def read(self):
        ok, frame = self.capture.read()
        if not ok or frame is None:
            return None
        return Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))

    def release(self):
        self.capture.release()


class OpenCVBackend(VideoBackend):
    """Video backend over ``cv2.VideoCapture``.

    Device index 0 is treated as the rear camera and index 1 as the front one,
    the usual ordering on phones and tablets.
    """

    def __init__(self, max_devices=2, api_preference=cv2.CAP_ANY):
        self.max_devices = max_devices
        self.api_preference = api_preference

    def enumerate_devices(self):
        devices = []
        for index in range(self.max_devices):
            capture = cv2.VideoCapture(index, self.api_preference)
            try:
                if capture.isOpened():
                    facing = FacingMode.REAR if index == 0 else FacingMode.FRONT
                    devices.append(DeviceInfo(index=index, facing=facing, label=f"camera{index}"))
            finally:
                capture.release()
        logger.debug(f"Enumerated {len(devices)} video devices")
        return devices

    def open_stream(self, constraints):
        index = constraints.device_index if constraints.device_index is not None else 0
        try:
            capture = cv2.VideoCapture(index, self.api_preference)
        except cv2.error as e:
            raise DeviceUnavailable(f"Cannot open camera {index}: {e}") from e

        if not capture.isOpened():
            capture.release()
            raise DeviceUnavailable(f"Camera {index} could not be opened")

        if constraints.width and constraints.height:
            accepted = (capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.width)
                        and capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.height))
            if not accepted:
                capture.release()
                raise DeviceUnavailable(
                    f"Camera {index} rejected resolution {constraints.width}x{constraints.height}"
                )

        facing = FacingMode.REAR if index == 0 else FacingMode.FRONT
        return OpenCVStream(capture, DeviceInfo(index=index, facing=facing, label=f"camera{index}"))


class CaptureController:
    """Owns one camera stream and grabs still frames from it.

    At most one stream is open per controller; ``open`` closes any previous
    stream first and ``close`` is safe to call repeatedly. Use as a context
    manager so every exit path releases the device::

        with CaptureController(OpenCVBackend()) as camera:
            camera.open(surface)
            frame = camera.capture_frame()
    """

    def __init__(self, backend: VideoBackend, max_dimension: int = DEFAULT_MAX_DIMENSION):
        self.backend = backend
        self.max_dimension = max_dimension
        self._stream = None
        self._surface: Optional[PreviewSurface] = None
        self._devices: List[DeviceInfo] = []
        self.facing = FacingMode.REAR
        self.resolution_hint: Tuple[int, int] = DEFAULT_RESOLUTION_HINT

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @property
    def is_open(self):
        return self._stream is not None

    @property
    def device(self) -> Optional[DeviceInfo]:
        return self._stream.device if self._stream is not None else None

    def _constraint_sets(self, facing, resolution_hint):
        matching = [d for d in self._devices if d.facing == facing]
        device = matching[0] if matching else self._devices[0]
        width, height = resolution_hint
        ideal = StreamConstraints(device_index=device.index, facing=facing, width=width, height=height)
        return [ideal, StreamConstraints()]

    def open(self, target_surface=None, facing=FacingMode.REAR, resolution_hint=DEFAULT_RESOLUTION_HINT):
        """Acquire a stream matching the facing preference and attach it to the preview.

        Tries the ideal constraints first and the basic ones second.

        Raises:
            DeviceUnavailable: When no device is present or both attempts fail.
        """
        self.close()
        facing = FacingMode(facing)

        self._devices = list(self.backend.enumerate_devices())
        if not self._devices:
            raise DeviceUnavailable("No video input device found")

        last_error = None
        for constraints in self._constraint_sets(facing, resolution_hint):
            try:
                stream = self.backend.open_stream(constraints)
            except DeviceUnavailable as e:
                label = 'basic' if constraints.is_basic else 'ideal'
                logger.warning(f"Camera rejected {label} constraints: {e}")
                last_error = e
                continue

            self._stream = stream
            self.facing = stream.device.facing or facing
            self.resolution_hint = tuple(resolution_hint)
            self._surface = target_surface
            if target_surface is not None:
                target_surface.attach(stream)
            logger.info(f"Camera opened: device={stream.device.index}, facing={self.facing.value}")
            return stream.device

        raise DeviceUnavailable(f"Camera could not be opened: {last_error}") from last_error

    def capture_frame(self):
        """Sample the current stream into an RGBA image clamped to max_dimension.

        Returns None when the controller is not open or no frame is available.
        """
        if self._stream is None:
            logger.debug("capture_frame called without an open stream")
            return None

        frame = self._stream.read()
        if frame is None:
            logger.warning("Camera returned no frame")
            return None

        image = frame.convert('RGBA')
        size = fit_within(image.width, image.height, self.max_dimension)
        if size != image.size:
            image = image.resize(size, Image.Resampling.LANCZOS)
        return image

    def switch_facing(self):
        """Toggle between front and rear cameras and reopen.

        With a single enumerated device the current stream is kept.

        Returns:
            FacingMode: The facing in use afterwards
        """
        if self._stream is None:
            raise DeviceUnavailable("Camera is not open")

        if len(self._devices) < 2:
            logger.info("Only one camera available, keeping current stream")
            return self.facing

        self.open(self._surface, self.facing.toggled(), self.resolution_hint)
        return self.facing

    def close(self):
        """Release the stream and detach the preview surface."""
        surface, self._surface = self._surface, None
        stream, self._stream = self._stream, None
        if surface is not None:
            surface.detach()
        if stream is not None:
            stream.release()
            logger.info("Camera released")
