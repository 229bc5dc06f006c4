"""Environments blueprint for Flask API."""
from flask import Blueprint
from ..models import Environment
from ..base.crud_base import CRUDBase
from ..utils import APIError, get_owned_survey, get_owned_environment, handle_api_exception
from shared.schemas import EnvironmentCreate, EnvironmentResponse

bp = Blueprint('environments', __name__, url_prefix='/api')


class EnvironmentCRUD(CRUDBase):
    """CRUD operations for Environment model."""

    def __init__(self):
        super().__init__(Environment, EnvironmentCreate, EnvironmentResponse, logger_name='environments')

    def authorize_create(self, validated_data):
        """The parent survey must exist and belong to the caller."""
        get_owned_survey(validated_data['survey_id'])
        return validated_data


environment_crud = EnvironmentCRUD()


@bp.route('/environments', methods=['POST'])
def create_environment():
    """Add a named environment to a survey."""
    return environment_crud.create()


@bp.route('/environments/<int:environment_id>', methods=['GET'])
def get_environment(environment_id):
    """Get a single environment."""
    try:
        return environment_crud.detail_response(get_owned_environment(environment_id))
    except APIError as e:
        return e.to_response()


@bp.route('/surveys/<int:survey_id>/environments', methods=['GET'])
def get_survey_environments(survey_id):
    """List a survey's environments in insertion order."""
    try:
        get_owned_survey(survey_id)
        query = Environment.query.filter_by(survey_id=survey_id).order_by(Environment.id)
        return environment_crud.list_response(query)
    except APIError as e:
        return e.to_response()
    except Exception as e:
        return handle_api_exception(e, "fetch environments")
