"""Backend utility functions for the agency survey API."""
from flask import jsonify, g
from .models import db, Survey, Environment
import logging


logger = logging.getLogger(__name__)


class APIError(Exception):
    """Raised inside request handlers to short-circuit with an error response."""

    def __init__(self, message, status_code=400, log_level='warning'):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.log_level = log_level

    def to_response(self):
        return api_error(self.message, self.status_code, self.log_level)


def api_error(message, status_code=400, log_level='warning', details=None):
    """
    Standardized API error response with consistent logging.

    Args:
        message (str): Error message for the client
        status_code (int): HTTP status code
        log_level (str): Logging level ('debug', 'info', 'warning', 'error', 'critical')
        details (dict, optional): Additional details for logging

    Returns:
        Flask response: JSON error response
    """
    log_func = getattr(logger, log_level, logger.warning)
    if details:
        log_func(f"API Error ({status_code}): {message} - Details: {details}")
    else:
        log_func(f"API Error ({status_code}): {message}")

    return jsonify({'error': message}), status_code


def handle_api_exception(e, operation="operation", status_code=500):
    """
    Handle exceptions in API endpoints with consistent logging and responses.

    Args:
        e (Exception): The exception that occurred
        operation (str): Description of the operation being performed
        status_code (int): HTTP status code to return

    Returns:
        Flask response: JSON error response
    """
    logger.error(f"Exception during {operation}: {str(e)}", exc_info=True)
    return api_error(f"Failed to {operation}", status_code, 'error')


def format_pydantic_errors(exc):
    """Flatten a pydantic ValidationError into a single message."""
    errors = []
    for error in exc.errors():
        field = '.'.join(str(x) for x in error['loc'])
        msg = error['msg']
        errors.append(f"{field}: {msg}" if field else msg)
    return '; '.join(errors)


def current_user():
    """Return the authenticated user of this request, or None."""
    return getattr(g, 'user', None)


def get_owned_survey(survey_id):
    """
    Load a survey that belongs to the authenticated user.

    Raises:
        APIError: 404 when the survey does not exist, 403 when it belongs to
            another user
    """
    survey = db.session.get(Survey, survey_id)
    if survey is None:
        raise APIError('Survey not found', 404)
    user = current_user()
    if user is None or survey.user_id != user.id:
        raise APIError('Unauthorized', 403)
    return survey


def get_owned_environment(environment_id):
    """
    Load an environment whose survey belongs to the authenticated user.

    Raises:
        APIError: 404 when the environment does not exist, 403 when its survey
            belongs to another user
    """
    environment = db.session.get(Environment, environment_id)
    if environment is None:
        raise APIError('Environment not found', 404)
    get_owned_survey(environment.survey_id)
    return environment
