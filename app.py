"""
BluffQuiz - A turn-based trivia game where players bluff their way to points.
Main Flask application entry point focusing on app creation, dependency injection, and service wiring.
"""

from flask import Flask
from flask_socketio import SocketIO
import os
import logging
import sys
import yaml

from src.content_manager import ContentValidationError
from src.config.game_settings import reset_game_settings
from container import configure_container
from config_factory import ConfigurationFactory

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(config_dict=None, async_mode='eventlet'):
    """
    Build the Flask app, the Socket.IO server and the service container.

    Args:
        config_dict: Explicit configuration values; the environment is used when omitted
        async_mode: Socket.IO async mode

    Returns:
        Tuple of (app, socketio, container)

    Raises:
        FileNotFoundError, yaml.YAMLError, ContentValidationError: If the questions file is unusable
    """
    app = Flask(__name__)

    # Load and apply configuration
    config_factory = ConfigurationFactory()
    if config_dict is None:
        app_config = config_factory.load_from_environment()
    else:
        app_config = config_factory.load_from_dict(config_dict)
    reset_game_settings()
    app.config.update(config_factory.get_flask_config())

    # In production, restrict to explicitly allowed origins from env var SOCKETIO_CORS_ALLOWED_ORIGINS (comma-separated)
    allowed_origins_env = os.environ.get('SOCKETIO_CORS_ALLOWED_ORIGINS', '')
    if app_config.is_production:
        cors_allowed = [o.strip() for o in allowed_origins_env.split(',') if o.strip()]
        socketio = SocketIO(app, cors_allowed_origins=cors_allowed or [], async_mode=async_mode)
    else:
        # Development/testing: permissive for local workflows
        socketio = SocketIO(app, cors_allowed_origins="*", async_mode=async_mode)

    container = configure_container(socketio=socketio, config=config_factory.to_dict())

    services = {
        'game_manager': container.get('GameManager'),
        'content_manager': container.get('ContentManager'),
        'session_service': container.get('SessionService'),
        'validation_service': container.get('ValidationService'),
    }

    # Load questions on startup
    try:
        services['content_manager'].load_questions_from_yaml()
        logger.info(f"Loaded {services['content_manager'].get_question_count()} questions from YAML")
    except (FileNotFoundError, yaml.YAMLError, ContentValidationError) as e:
        logger.critical(f"Question file validation failed, which is critical for game play. Error: {e}")
        raise

    # Register REST endpoints
    from src.routes.api import create_api_blueprint
    app.register_blueprint(create_api_blueprint(services))

    # Register Socket.IO handlers
    from src.handlers.socket_handlers import register_socket_handlers
    register_socket_handlers(socketio, services)

    return app, socketio, container


def create_app_or_exit():
    """Create the application, shutting down when the question file is unusable."""
    try:
        return create_app()
    except (FileNotFoundError, yaml.YAMLError, ContentValidationError):
        logger.critical("FATAL: Server shutting down.")
        sys.exit(1)


if __name__ == '__main__':
    app, socketio, _ = create_app_or_exit()
    app_config = ConfigurationFactory().get_config()
    logger.info(f"Starting BluffQuiz server on {app_config.host}:{app_config.port}")
    try:
        socketio.run(app, host=app_config.host, port=app_config.port, debug=app_config.debug)
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
    finally:
        logger.info("Shutting down BluffQuiz server...")
