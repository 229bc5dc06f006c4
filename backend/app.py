"""Flask application factory for the agency survey backend."""
from flask import Flask
import logging
from pathlib import Path
from .models import db
from .blueprints import auth, surveys, environments, photos, admin
from .cli import init_db_command, sweep_orphans_command
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(test_config=None):
    """Flask application factory for the agency survey backend.

    Creates and configures a Flask application instance with:
    - SQLAlchemy database integration
    - Blueprint registration for API endpoints
    - Bearer token authentication
    - CLI command registration
    - Logging configuration

    Args:
        test_config (dict, optional): Configuration overrides for testing

    Returns:
        Flask: Configured Flask application instance
    """
    setup_logging((test_config or {}).get('LOG_DIR'))
    logger.info("Starting Flask application initialization")

    app = Flask(__name__, instance_relative_config=True)
    logger.debug(f"Flask app created with instance path: {app.instance_path}")

    if test_config is None:
        # Load the instance config, if it exists, when not testing
        config_loaded = app.config.from_pyfile('config.py', silent=True)
        if config_loaded:
            logger.info("Loaded configuration from instance/config.py")
        else:
            logger.debug("No instance config file found, using defaults")
        app.config.from_prefixed_env('SURVEY')
    else:
        app.config.from_mapping(test_config)
        logger.info("Loaded test configuration")

    try:
        Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    except OSError:
        logger.debug(f"Instance directory not created: {app.instance_path}")

    # Only set default database URI if not already set (e.g., by tests)
    if 'SQLALCHEMY_DATABASE_URI' not in app.config:
        db_path = Path(app.instance_path) / 'agency_survey.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f'sqlite:///{db_path}'
        logger.info(f"Configured database URI: {app.config['SQLALCHEMY_DATABASE_URI']}")
    else:
        logger.info(f"Using existing database URI: {app.config['SQLALCHEMY_DATABASE_URI']}")
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config.setdefault('MAX_UPLOAD_BYTES', 10 * 1024 * 1024)
    app.config.setdefault('ORPHAN_GRACE_HOURS', 24)

    db.init_app(app)
    logger.info("SQLAlchemy database initialized")

    logger.info("Registering API blueprints")
    for module in (auth, surveys, environments, photos, admin):
        app.register_blueprint(module.bp)
        logger.debug(f"Registered {module.bp.name} blueprint")
    logger.info("All API blueprints registered successfully")

    auth.init_auth(app)
    logger.info("Authentication system initialized")

    app.cli.add_command(init_db_command)
    app.cli.add_command(sweep_orphans_command)
    logger.info("CLI commands registered: init-db, sweep-orphans")

    logger.info("Flask application initialization completed successfully")
    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
