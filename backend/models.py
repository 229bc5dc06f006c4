from flask_sqlalchemy import SQLAlchemy
import logging
from shared.models import Base, User, AuthToken, Survey, Environment, Photo

logger = logging.getLogger(__name__)
db = SQLAlchemy(model_class=Base)

__all__ = ['db', 'Base', 'User', 'AuthToken', 'Survey', 'Environment', 'Photo']
