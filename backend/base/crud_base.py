"""Base CRUD class for Flask blueprints."""
from flask import jsonify, request
from typing import Type, Optional, Dict, Any
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.orm import DeclarativeBase
from shared.validation import ValidationError
from ..models import db
from ..utils import APIError, format_pydantic_errors
import logging


class CRUDBase:
    """Base class providing common create/read operations for Flask blueprints.

    This class encapsulates common patterns for:
    - Owner-scoped list retrieval
    - Single resource retrieval
    - Resource creation with pydantic validation

    Subclasses should override:
    - authorize_create() - to check ownership of the parent resource
    - get_singular_name() - to customize resource name
    """

    def __init__(self, model_class: Type[DeclarativeBase], create_schema: Type[BaseModel],
                 response_schema: Type[BaseModel], logger_name: Optional[str] = None):
        """Initialize CRUD base class.

        Args:
            model_class: SQLAlchemy model class
            create_schema: Pydantic schema validating creation payloads
            response_schema: Pydantic schema serializing instances
            logger_name: Optional logger name (defaults to class name)
        """
        self.model = model_class
        self.create_schema = create_schema
        self.response_schema = response_schema
        self.logger = logging.getLogger(logger_name or self.__class__.__name__)

    def serialize(self, resource: DeclarativeBase) -> Dict[str, Any]:
        """Serialize resource to a JSON-ready dictionary."""
        return self.response_schema.model_validate(resource).model_dump(mode='json')

    def list_response(self, query):
        """Serialize every row of a query as a JSON array."""
        return jsonify([self.serialize(item) for item in query.all()])

    def detail_response(self, resource):
        return jsonify(self.serialize(resource))

    def get_json_data(self) -> Dict[str, Any]:
        """Get and validate JSON data from request.

        Raises:
            ValidationError: If JSON is invalid or not a dict
        """
        data = request.get_json(silent=True)
        if data is None:
            raise ValidationError('Request body must contain valid JSON')
        if not isinstance(data, dict):
            raise ValidationError('Request data must be a JSON object')
        return data

    def validate_create_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Validate data for creation with the create schema.

        Raises:
            ValidationError: If validation fails
        """
        try:
            return self.create_schema(**data).model_dump()
        except PydanticValidationError as e:
            raise ValidationError(format_pydantic_errors(e))

    def authorize_create(self, validated_data: Dict[str, Any]) -> Dict[str, Any]:
        """Check access and add server-side fields before creation.

        Subclasses override this to enforce ownership; raise APIError to reject.
        """
        return validated_data

    def create(self) -> tuple:
        """Create a new resource and return its serialized form with 201."""
        try:
            validated_data = self.validate_create_data(self.get_json_data())
            validated_data = self.authorize_create(validated_data)

            resource = self.model(**validated_data)
            db.session.add(resource)
            db.session.commit()

            self.logger.info(f"Created {self.get_singular_name()}: {resource.id}")
            return jsonify(self.serialize(resource)), 201

        except ValidationError as e:
            self.logger.warning(f"Validation error in {self.get_singular_name()} creation: {e}")
            return jsonify({'error': str(e)}), 400
        except APIError as e:
            return e.to_response()
        except Exception as e:
            self.logger.error(f"Failed to create {self.get_singular_name()}: {e}", exc_info=True)
            db.session.rollback()
            return jsonify({'error': f'Failed to create {self.get_singular_name()}'}), 500

    def get_singular_name(self) -> str:
        """Get singular resource name for messages (e.g. 'survey')."""
        table_name = self.model.__tablename__
        if table_name.endswith('s'):
            return table_name[:-1]
        return table_name
