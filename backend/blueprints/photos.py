"""Photos blueprint for Flask API: blob uploads and photo records."""
from flask import Blueprint, jsonify, request, current_app
import hashlib
import logging
from pydantic import ValidationError as PydanticValidationError
from ..models import db, Photo
from ..services.cloud_storage import get_cloud_storage
from ..utils import (
    APIError, api_error, handle_api_exception, format_pydantic_errors,
    get_owned_survey, get_owned_environment
)
from shared.enums import PhotoType
from shared.schemas import PhotoCreate, PhotoResponse, UploadResponse
from shared.utils import parse_object_name, decode_image, CorruptedImageError

logger = logging.getLogger(__name__)

bp = Blueprint('photos', __name__, url_prefix='/api')

ALLOWED_MIME_TYPES = {'image/jpeg', 'image/jpg'}
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB


def serialize_photo(photo):
    return PhotoResponse.model_validate(photo).model_dump(mode='json')


def _read_upload(image_file, max_size):
    """Read an uploaded file in chunks, enforcing the size limit.

    Returns:
        tuple: (bytes, sha256 hex digest)
    """
    chunk_size = 8192
    hash_obj = hashlib.sha256()
    chunks = []
    total_size = 0

    while True:
        chunk = image_file.stream.read(chunk_size)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_size:
            raise APIError(f'File too large. Maximum size: {max_size // (1024*1024)}MB', 400)
        chunks.append(chunk)
        hash_obj.update(chunk)

    return b''.join(chunks), hash_obj.hexdigest()


@bp.route('/uploads', methods=['POST'])
def upload_blob():
    """Store a photo blob in object storage under a client-chosen object name.

    Form fields: image (file), object_name. The same object name may be
    uploaded again; the previous blob is overwritten.
    """
    try:
        object_name = (request.form.get('object_name') or '').strip()
        parsed = parse_object_name(object_name)
        if parsed is None:
            return api_error('object_name does not follow the storage layout', 400)

        survey = get_owned_survey(parsed['survey_id'])
        environment = get_owned_environment(parsed['environment_id'])
        if environment.survey_id != survey.id:
            return api_error('Environment does not belong to survey', 400)

        image_file = request.files.get('image')
        if image_file is None or image_file.filename == '':
            return api_error('No image file provided', 400)
        if image_file.mimetype not in ALLOWED_MIME_TYPES:
            return api_error(f'Invalid file type. Content type {image_file.mimetype} not allowed', 400)

        max_size = current_app.config.get('MAX_UPLOAD_BYTES', DEFAULT_MAX_UPLOAD_BYTES)
        data, hash_value = _read_upload(image_file, max_size)
        if not data:
            return api_error('Empty image file', 400)

        try:
            decode_image(data)
        except CorruptedImageError as e:
            return api_error(f'Invalid image data: {e}', 400)

    except APIError as e:
        return e.to_response()

    try:
        url = get_cloud_storage().upload_bytes(object_name, data)
    except Exception as e:
        return handle_api_exception(e, "store photo in object storage")

    logger.info(f"Stored blob {object_name} ({len(data)} bytes, hash={hash_value[:16]}...)")
    response = UploadResponse(object_name=object_name, url=url, size_bytes=len(data), hash_value=hash_value)
    return jsonify(response.model_dump(mode='json')), 201


@bp.route('/photos', methods=['POST'])
def create_photo():
    """Record an uploaded photo.

    Idempotent on client_uid: repeating a request returns the existing
    record with status 200.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return api_error('Request body must be a JSON object', 400)

    try:
        photo_data = PhotoCreate(**data)
    except PydanticValidationError as e:
        return api_error(format_pydantic_errors(e), 400)

    try:
        environment = get_owned_environment(photo_data.environment_id)
        if parse_object_name(photo_data.object_name)['survey_id'] != environment.survey_id:
            return api_error('object_name does not match the environment survey', 400)

        existing = Photo.query.filter_by(client_uid=photo_data.client_uid).first()
        if existing is not None:
            if existing.environment_id != environment.id or existing.object_name != photo_data.object_name:
                return api_error('client_uid already used by another photo', 409)
            logger.info(f"Photo {photo_data.client_uid} already recorded as {existing.id}")
            return jsonify(serialize_photo(existing)), 200
    except APIError as e:
        return e.to_response()

    try:
        fields = photo_data.model_dump()
        fields['photo_type'] = PhotoType(fields['photo_type'])
        photo = Photo(**fields)
        db.session.add(photo)
        db.session.commit()
        logger.info(f"Photo recorded: id={photo.id}, environment_id={photo.environment_id}, type={photo.photo_type.value}")
        return jsonify(serialize_photo(photo)), 201
    except Exception as e:
        db.session.rollback()
        return handle_api_exception(e, "save photo")


@bp.route('/photos/<int:photo_id>', methods=['GET'])
def get_photo(photo_id):
    """Get photo metadata."""
    photo = db.session.get(Photo, photo_id)
    if photo is None:
        return api_error('Photo not found', 404)
    try:
        get_owned_environment(photo.environment_id)
    except APIError as e:
        return e.to_response()
    return jsonify(serialize_photo(photo))


@bp.route('/environments/<int:environment_id>/photos', methods=['GET'])
def get_environment_photos(environment_id):
    """List an environment's photos in capture order."""
    try:
        get_owned_environment(environment_id)
        photos = Photo.query.filter_by(environment_id=environment_id).order_by(Photo.id).all()
        return jsonify([serialize_photo(p) for p in photos])
    except APIError as e:
        return e.to_response()
    except Exception as e:
        return handle_api_exception(e, "fetch photos")
