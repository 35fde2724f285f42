"""
Error Handler for BluffQuiz

Decorator that gives Socket.IO handlers consistent error reporting.
"""

import functools
import logging

from src.core.errors import GameError
from src.services.error_response_factory import ErrorResponseFactory

logger = logging.getLogger(__name__)


def with_error_handling(func):
    """
    Decorator for Socket.IO event handlers to provide consistent error handling.

    Game errors are sent back to the caller as an ``error`` event with their
    own code. Unexpected exceptions are logged and reported as INTERNAL_ERROR.

    Args:
        func: Socket.IO event handler function

    Returns:
        Wrapped function with error handling
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        factory = ErrorResponseFactory()
        try:
            return func(*args, **kwargs)
        except GameError as e:
            factory.emit_game_error(e)
        except Exception as e:
            error_code, error_message, details, _ = factory.handle_exception(e, func.__name__)
            factory.emit_error(error_code, error_message, details)

    return wrapper
