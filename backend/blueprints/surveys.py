"""Surveys blueprint for Flask API."""
from flask import Blueprint
from ..models import Survey
from ..base.crud_base import CRUDBase
from ..utils import APIError, current_user, get_owned_survey, handle_api_exception
from shared.schemas import SurveyCreate, SurveyResponseSchema

bp = Blueprint('surveys', __name__, url_prefix='/api')


class SurveyCRUD(CRUDBase):
    """CRUD operations for Survey model."""

    def __init__(self):
        super().__init__(Survey, SurveyCreate, SurveyResponseSchema, logger_name='surveys')

    def authorize_create(self, validated_data):
        """Surveys are always owned by the authenticated user."""
        validated_data['user_id'] = current_user().id
        return validated_data


survey_crud = SurveyCRUD()


@bp.route('/surveys', methods=['POST'])
def create_survey():
    """Create a new survey owned by the caller."""
    return survey_crud.create()


@bp.route('/surveys', methods=['GET'])
def get_surveys():
    """List the caller's surveys, newest first."""
    try:
        query = Survey.query.filter_by(user_id=current_user().id).order_by(Survey.created_at.desc(), Survey.id.desc())
        return survey_crud.list_response(query)
    except Exception as e:
        return handle_api_exception(e, "fetch surveys")


@bp.route('/surveys/<int:survey_id>', methods=['GET'])
def get_survey(survey_id):
    """Get a single survey owned by the caller."""
    try:
        return survey_crud.detail_response(get_owned_survey(survey_id))
    except APIError as e:
        return e.to_response()
