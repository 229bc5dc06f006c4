"""Per-photo capture wizard: classify, capture, review, submit."""
import logging

from shared.enums import FacingMode, PhotoType, WizardState
from shared.service_items import is_painting_item, search_service_items
from shared.validation import ValidationError
from .capture.camera import DEFAULT_RESOLUTION_HINT
from .capture.enhancer import enhance_and_encode, load_image_file
from .errors import CaptureEmpty, DeviceUnavailable, WizardStateError
from .staging import StagingStore, DimensionsForm

logger = logging.getLogger(__name__)

MODE_CAMERA = 'camera'
MODE_UPLOAD_FILE = 'upload_file'


class PhotoWizard:
    """Drives one photo at a time through the capture flow.

    States: IDLE -> CAPTURING -> CAPTURED -> ENHANCING -> STAGED ->
    UPLOADING -> RECORDED. Retake and cancel return to IDLE; a failed
    submit returns to STAGED with the staging store intact.

    The wizard owns its camera and staging store. Use it as a context manager
    so the camera is released on every exit path.
    """

    def __init__(self, camera, gateway, survey_id, environment_id, settings=None, store=None):
        self.camera = camera
        self.gateway = gateway
        self.survey_id = survey_id
        self.environment_id = environment_id
        self.settings = settings
        self.store = store or StagingStore()
        self.dimensions_form = None
        self.mode = None
        self.last_error = None
        self._state = WizardState.IDLE
        self._surface = None
        self._facing = FacingMode(settings.get('camera_facing', FacingMode.REAR)) if settings is not None else FacingMode.REAR

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @property
    def state(self):
        return self._state

    def _require(self, operation, *states):
        if self._state not in states:
            raise WizardStateError(operation, self._state)

    def _transition(self, state):
        logger.debug(f"Wizard {self._state.value} -> {state.value}")
        self._state = state

    # Classification

    def select_type(self, photo_type):
        """Start a new photo of the given classification."""
        self._require('select a photo type', WizardState.IDLE, WizardState.RECORDED)
        self.store.clear()
        self.store.set_classification(photo_type)
        self.dimensions_form = None
        self.last_error = None
        self._transition(WizardState.IDLE)

    def search_items(self, query=''):
        return search_service_items(query)

    def select_service_item(self, label):
        """Pick the service item; painting items open the dimensions form."""
        self._require('select a service item', WizardState.IDLE)
        if self.store.photo_type is not PhotoType.SERVICOS_ITENS:
            raise ValidationError("Service items only apply to servicos_itens photos")
        self.store.set_service_item(label)
        self.store.set_dimensions(None)
        self.dimensions_form = DimensionsForm() if is_painting_item(label) else None
        return self.dimensions_form

    def confirm_dimensions(self, width, height):
        """Validate painting width/height and stage them with the derived area."""
        self._require('confirm dimensions', WizardState.IDLE)
        if self.dimensions_form is None:
            raise ValidationError("The selected service item does not take dimensions")
        self.dimensions_form.width = width
        self.dimensions_form.height = height
        dimensions = self.dimensions_form.confirm()
        self.store.set_dimensions(dimensions)
        return dimensions

    def _check_classification(self):
        if self.store.photo_type is None:
            raise ValidationError("Select a photo type first")
        if self.store.photo_type is PhotoType.SERVICOS_ITENS:
            if not self.store.service_item:
                raise ValidationError("Select a service item first")
            if self.dimensions_form is not None and self.store.dimensions is None:
                raise ValidationError("Confirm the painting dimensions first")

    # Capture

    def start_capture(self, surface=None, facing=None):
        """Open the camera, falling back to upload-file mode when it is unavailable.

        Returns:
            str: MODE_CAMERA or MODE_UPLOAD_FILE
        """
        self._require('start capture', WizardState.IDLE)
        self._check_classification()
        self._surface = surface
        if facing is not None:
            self._facing = FacingMode(facing)

        resolution = self.settings.resolution_hint if self.settings is not None else DEFAULT_RESOLUTION_HINT
        try:
            self.camera.open(surface, self._facing, resolution)
            self.mode = MODE_CAMERA
        except DeviceUnavailable as e:
            logger.warning(f"Camera unavailable, switching to file upload: {e}")
            self.last_error = e
            self.mode = MODE_UPLOAD_FILE

        self._transition(WizardState.CAPTURING)
        return self.mode

    def switch_camera(self):
        self._require('switch camera', WizardState.CAPTURING)
        if self.mode != MODE_CAMERA:
            return None
        try:
            self._facing = self.camera.switch_facing()
        except DeviceUnavailable as e:
            logger.warning(f"Camera lost while switching, switching to file upload: {e}")
            self.last_error = e
            self.mode = MODE_UPLOAD_FILE
            return None
        return self._facing

    def shutter(self):
        """Grab a frame from the camera and stage it.

        Raises:
            CaptureEmpty: When no frame is available yet; the wizard stays
                in CAPTURING so the user can retry.
        """
        self._require('capture', WizardState.CAPTURING)
        if self.mode != MODE_CAMERA:
            raise CaptureEmpty("Camera is not available, choose a file instead")

        frame = self.camera.capture_frame()
        if frame is None:
            raise CaptureEmpty("Camera is not ready")

        self.camera.close()
        self._transition(WizardState.CAPTURED)
        return self._stage(frame)

    def use_file(self, image_data):
        """Stage a user-chosen image file instead of a camera frame.

        Raises:
            CorruptedImageError: When the file is not a decodable image.
        """
        self._require('use a file', WizardState.CAPTURING)
        max_dimension = self.settings.camera_max_dimension if self.settings is not None else self.camera.max_dimension
        image = load_image_file(image_data, max_dimension)
        self.camera.close()
        self._transition(WizardState.CAPTURED)
        return self._stage(image)

    def _stage(self, image):
        self._transition(WizardState.ENHANCING)
        self.store.set_image(enhance_and_encode(image, self.settings))
        self._transition(WizardState.STAGED)
        return self.store.snapshot()

    # Review

    def retake(self, surface=None):
        """Discard the staged image and restart capture with the same classification."""
        self._require('retake', WizardState.STAGED)
        self.camera.close()
        self.store.discard_image()
        self._transition(WizardState.IDLE)
        return self.start_capture(surface if surface is not None else self._surface)

    def cancel(self):
        """Abandon the current photo and return to type selection."""
        self._require('cancel', WizardState.IDLE, WizardState.CAPTURING, WizardState.CAPTURED,
                      WizardState.STAGED, WizardState.RECORDED)
        self.camera.close()
        self.store.clear()
        self.dimensions_form = None
        self.mode = None
        self._transition(WizardState.IDLE)

    def submit(self, observation=None):
        """Confirm the staged photo and hand it to the submit gateway.

        On failure the wizard returns to STAGED and the staging store is kept
        so the same confirm can be retried.
        """
        self._require('submit', WizardState.STAGED)
        self.store.set_observation(observation)
        staged = self.store.confirm()

        self._transition(WizardState.UPLOADING)
        try:
            record = self.gateway.submit(staged, self.survey_id, self.environment_id)
        except Exception as e:
            self.last_error = e
            self._transition(WizardState.STAGED)
            raise

        self.store.clear()
        self.camera.close()
        self.dimensions_form = None
        self.last_error = None
        self._transition(WizardState.RECORDED)
        return record

    def close(self):
        """Release the camera and drop any in-progress photo."""
        self.camera.close()
        self.store.clear()
        self.dimensions_form = None
        self.mode = None
        self._state = WizardState.IDLE
