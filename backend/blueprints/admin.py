"""Admin blueprint: read-only views across all users."""
from functools import wraps
from flask import Blueprint, jsonify
from ..models import User, Survey
from ..utils import api_error, current_user
from shared.enums import UserRole
from shared.schemas import UserResponse, SurveyResponseSchema

bp = Blueprint('admin', __name__, url_prefix='/api/admin')


def admin_required(view):
    """Reject non-admin callers with 403."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        user = current_user()
        if user is None or user.role != UserRole.ADMIN:
            return api_error('Forbidden - Admin access required', 403)
        return view(*args, **kwargs)
    return wrapper


@bp.route('/users', methods=['GET'])
@admin_required
def get_users():
    """List every registered user."""
    users = User.query.order_by(User.id).all()
    return jsonify([UserResponse.model_validate(u).model_dump(mode='json') for u in users])


@bp.route('/surveys', methods=['GET'])
@admin_required
def get_all_surveys():
    """List every survey, newest first."""
    surveys = Survey.query.order_by(Survey.created_at.desc(), Survey.id.desc()).all()
    return jsonify([SurveyResponseSchema.model_validate(s).model_dump(mode='json') for s in surveys])
