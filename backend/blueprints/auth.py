"""Authentication blueprint: user registration and bearer tokens."""
from flask import Blueprint, request, jsonify, g
import logging
import secrets
from pydantic import ValidationError as PydanticValidationError
from werkzeug.security import generate_password_hash, check_password_hash
from ..models import db, User, AuthToken
from ..utils import api_error, handle_api_exception, format_pydantic_errors
from shared.enums import UserRole
from shared.schemas import UserRegister, UserLogin, UserResponse

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__, url_prefix='/api')

PUBLIC_PATHS = ('/api/auth/login', '/api/auth/register')


def _bearer_token():
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header[len('Bearer '):].strip()
    return None


@bp.route('/auth/register', methods=['POST'])
def register():
    """Register a new user."""
    try:
        data = UserRegister(**(request.get_json(silent=True) or {}))
    except PydanticValidationError as e:
        return api_error(format_pydantic_errors(e), 400)

    if User.query.filter_by(username=data.username).first():
        return api_error('User already exists', 400)

    # First user becomes ADMIN, others SURVEYOR
    role = UserRole.ADMIN if User.query.count() == 0 else UserRole.SURVEYOR

    try:
        user = User(
            username=data.username,
            email=data.email,
            password_hash=generate_password_hash(data.password),
            role=role
        )
        db.session.add(user)
        db.session.commit()
        logger.info(f"Registered user {user.username} (role={role.value})")

        return jsonify({
            'message': 'User registered successfully',
            'user': UserResponse.model_validate(user).model_dump(mode='json')
        }), 201
    except Exception as e:
        db.session.rollback()
        return handle_api_exception(e, "register user")


@bp.route('/auth/login', methods=['POST'])
def login():
    """Login user and return a bearer token."""
    try:
        data = UserLogin(**(request.get_json(silent=True) or {}))
    except PydanticValidationError as e:
        return api_error(format_pydantic_errors(e), 400)

    user = User.query.filter_by(username=data.username).first()
    if not user or not check_password_hash(user.password_hash, data.password):
        return api_error('Invalid username or password', 401)

    try:
        token = secrets.token_urlsafe(32)
        db.session.add(AuthToken(token=token, user_id=user.id))
        db.session.commit()
        logger.info(f"User {user.username} logged in")

        return jsonify({
            'token': token,
            'user': UserResponse.model_validate(user).model_dump(mode='json')
        })
    except Exception as e:
        db.session.rollback()
        return handle_api_exception(e, "log in")


@bp.route('/auth/logout', methods=['POST'])
def logout():
    """Logout user by invalidating token."""
    token = _bearer_token()
    try:
        entry = db.session.get(AuthToken, token) if token else None
        if entry is None:
            return api_error('Invalid token', 400)
        db.session.delete(entry)
        db.session.commit()
        return jsonify({'message': 'Logged out successfully'})
    except Exception as e:
        db.session.rollback()
        return handle_api_exception(e, "log out")


@bp.route('/auth/me', methods=['GET'])
def me():
    """Get current user info."""
    return jsonify(UserResponse.model_validate(g.user).model_dump(mode='json'))


def init_auth(app):
    """Require a valid bearer token on every /api route except login/register."""
    @app.before_request
    def check_auth():
        if not request.path.startswith('/api'):
            return
        if request.path.startswith(PUBLIC_PATHS):
            return

        token = _bearer_token()
        if token:
            entry = db.session.get(AuthToken, token)
            if entry is not None and entry.user is not None:
                g.user = entry.user
                return

        return api_error('Authentication required', 401)
