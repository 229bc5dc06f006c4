"""Externalize a staged photo: blob upload, then metadata record."""
import logging

import requests

from shared.utils import build_object_name
from ..errors import UploadFailed, RecordingFailed
from ..staging import StagedPhoto

logger = logging.getLogger(__name__)


def _error_message(response):
    try:
        return response.json().get('error') or response.reason
    except ValueError:
        return response.reason or f"HTTP {response.status_code}"


class SubmitGateway:
    """Uploads a StagedPhoto to object storage and records it through the API.

    Neither step is retried here; callers keep the staged photo and call
    ``submit`` again, which reuses the same object name and client uid.
    """

    def __init__(self, api_service, max_upload_bytes=None):
        self.api = api_service
        self.max_upload_bytes = max_upload_bytes

    def object_name_for(self, staged, survey_id, environment_id):
        return build_object_name(survey_id, environment_id, staged.photo_type,
                                 staged.captured_at, staged.service_item)

    def submit(self, staged, survey_id, environment_id):
        """Upload and record a staged photo.

        Returns:
            dict: The recorded photo as returned by the API

        Raises:
            UploadFailed: Object storage did not accept the payload.
            RecordingFailed: The metadata API rejected the record after upload.
        """
        if not isinstance(staged, StagedPhoto):
            raise TypeError("submit() requires a confirmed StagedPhoto")

        object_name = self.object_name_for(staged, survey_id, environment_id)
        if self.max_upload_bytes is not None and staged.size_bytes > self.max_upload_bytes:
            raise UploadFailed(f"Image is {staged.size_bytes} bytes, limit is {self.max_upload_bytes}")

        try:
            response = self.api.upload_image(object_name, staged.image_bytes)
        except requests.exceptions.RequestException as e:
            logger.error(f"Upload of {object_name} failed: {e}")
            raise UploadFailed(f"Upload failed: {e}") from e
        if response.status_code != 201:
            message = _error_message(response)
            logger.error(f"Upload of {object_name} rejected ({response.status_code}): {message}")
            raise UploadFailed(message, status_code=response.status_code)

        try:
            url = response.json()['url']
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Upload of {object_name} returned an unreadable body: {e}")
            raise UploadFailed("Upload response did not include a URL", status_code=response.status_code) from e
        logger.info(f"Uploaded {object_name} ({staged.size_bytes} bytes)")

        payload = {
            'environment_id': environment_id,
            'client_uid': staged.client_uid,
            'image_url': url,
            'object_name': object_name,
            'observation': staged.observation,
            'photo_type': staged.photo_type.value,
            'service_item': staged.service_item,
            'painting_dimensions': staged.dimensions.model_dump() if staged.dimensions else None,
            'size_bytes': staged.size_bytes,
            'hash_value': staged.hash_value,
        }

        try:
            response = self.api.post('/api/photos', json=payload)
        except requests.exceptions.RequestException as e:
            logger.error(f"Recording {object_name} failed: {e}")
            raise RecordingFailed(f"Recording failed: {e}", object_name, url) from e
        if response.status_code not in (200, 201):
            message = _error_message(response)
            logger.error(f"Recording {object_name} rejected ({response.status_code}): {message}")
            raise RecordingFailed(message, object_name, url, status_code=response.status_code)

        try:
            record = response.json()
        except ValueError as e:
            logger.error(f"Recording {object_name} returned an unreadable body: {e}")
            raise RecordingFailed("Recording response was not JSON", object_name, url,
                                  status_code=response.status_code) from e
        logger.info(f"Photo recorded: id={record.get('id')}, object={object_name}")
        return record
