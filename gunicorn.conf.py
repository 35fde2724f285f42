"""
Gunicorn configuration for BluffQuiz application.
Optimized for Socket.IO with eventlet workers.
"""

import sys
import logging
import yaml

from config_factory import load_config
from src.content_manager import ContentManager, ContentValidationError

logger = logging.getLogger(__name__)

# Load configuration (renamed to avoid conflicts with gunicorn's internal 'config')
app_config = load_config()


def check_questions_file(path):
    """
    Load the question bank once and fail when it cannot be played.

    Returns:
        int: Number of questions found

    Raises:
        FileNotFoundError, yaml.YAMLError, ContentValidationError: If the file is unusable or empty
    """
    content_manager = ContentManager(path)
    content_manager.load_questions_from_yaml()
    count = content_manager.get_question_count()
    if count == 0:
        raise ContentValidationError(f"{path} contains no questions")
    return count


def on_starting(server):
    """Validate the question bank in the master process, before any worker is forked."""
    logger.info(f"Validating {app_config.questions_file} before starting workers...")
    try:
        count = check_questions_file(app_config.questions_file)
    except (FileNotFoundError, yaml.YAMLError, ContentValidationError) as e:
        logger.critical(f"FATAL: Question file validation failed. Server shutting down. Error: {e}")
        sys.exit(1)
    logger.info(f"Question bank ready with {count} questions")


def when_ready(server):
    logger.info(f"BluffQuiz listening on {bind} ({app_config.environment.value})")


# Server socket
bind = f"{app_config.host}:{app_config.port}"
backlog = 1024

# A single eventlet worker: games, locks and Socket.IO rooms live in process memory
workers = 1
worker_class = "eventlet"
worker_connections = app_config.worker_connections
timeout = app_config.timeout
keepalive = app_config.keepalive
graceful_timeout = app_config.timeout

# Logging
accesslog = "-"
errorlog = "-"
loglevel = app_config.log_level

proc_name = "bluffquiz"
preload_app = False
