"""
Error Response Factory for BluffQuiz

Builds the success and error envelopes shared by the REST API and Socket.IO:
    {"success": true, "data": ...}
    {"success": false, "error": {"code", "message", "details"}}
"""

import logging
import traceback
from typing import Any, Dict, Optional, Tuple

from flask_socketio import emit

from src.core.errors import ErrorCode, GameError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_STATUS = 500


class ErrorResponseFactory:

    def create_success_response(self, data: Any) -> Dict:
        return {"success": True, "data": data}

    def create_error_response(self, code: ErrorCode, message: str, details: Optional[Dict] = None) -> Dict:
        return {
            "success": False,
            "error": {"code": code.value, "message": message, "details": details or {}}
        }

    def handle_exception(self, e: Exception, context: str = "Unknown") -> Tuple[ErrorCode, str, Dict, int]:
        """
        Classify an exception raised while serving a request.

        A GameError is a legitimate rejection and keeps its code and status.
        Anything else is a fault: it is logged with its traceback and reported
        as INTERNAL_ERROR without leaking its message.

        Returns:
            Tuple of (error_code, message, details, http_status)
        """
        if isinstance(e, GameError):
            logger.warning(f"{context} rejected: {e.code.value} - {e.message}")
            return e.code, e.message, e.details, e.http_status

        logger.error(f"Unexpected exception in {context}: {e}\n{traceback.format_exc()}")
        return ErrorCode.INTERNAL_ERROR, "An internal error occurred", {}, INTERNAL_ERROR_STATUS

    def create_response_for_exception(self, e: Exception, context: str = "Unknown") -> Tuple[Dict, int]:
        """Error envelope and HTTP status for any exception."""
        code, message, details, status = self.handle_exception(e, context)
        return self.create_error_response(code, message, details), status

    def emit_error(self, code: ErrorCode, message: str, details: Optional[Dict] = None):
        """Send an ``error`` event to the client whose event is being handled."""
        logger.warning(f"Emitting error: {code.value} - {message}")
        emit('error', self.create_error_response(code, message, details))

    def emit_game_error(self, error: GameError):
        self.emit_error(error.code, error.message, error.details)
