"""
Core error definitions for BluffQuiz

Provides error codes and the game exception taxonomy. These don't depend on other services.
"""

from enum import Enum
from typing import Dict, Optional


class ErrorCode(Enum):
    """Standardized error codes for the application."""

    # Request and identity errors
    INVALID_DATA = "INVALID_DATA"
    MISSING_DATA = "MISSING_DATA"
    UNAUTHENTICATED = "UNAUTHENTICATED"

    # Lookup errors
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    ROUND_NOT_FOUND = "ROUND_NOT_FOUND"
    QUESTION_NOT_FOUND = "QUESTION_NOT_FOUND"
    ANSWER_NOT_FOUND = "ANSWER_NOT_FOUND"

    # Permission errors
    ADMIN_REQUIRED = "ADMIN_REQUIRED"
    NOT_A_PARTICIPANT = "NOT_A_PARTICIPANT"
    NOT_QUESTION_MASTER = "NOT_QUESTION_MASTER"
    QUESTION_MASTER_CANNOT_ANSWER = "QUESTION_MASTER_CANNOT_ANSWER"
    QUESTION_MASTER_CANNOT_VOTE = "QUESTION_MASTER_CANNOT_VOTE"
    CORRECT_GUESSER_CANNOT_VOTE = "CORRECT_GUESSER_CANNOT_VOTE"
    CREATOR_CANNOT_LEAVE = "CREATOR_CANNOT_LEAVE"

    # Phase errors
    WRONG_GAME_STATUS = "WRONG_GAME_STATUS"
    WRONG_PHASE = "WRONG_PHASE"
    GAME_FINISHED = "GAME_FINISHED"

    # Conflict errors
    ROUND_ALREADY_STARTED = "ROUND_ALREADY_STARTED"
    QUESTION_ALREADY_USED = "QUESTION_ALREADY_USED"
    ALREADY_GUESSED_CORRECTLY = "ALREADY_GUESSED_CORRECTLY"
    GAME_FULL = "GAME_FULL"

    # Validation errors
    EMPTY_ANSWER = "EMPTY_ANSWER"
    ANSWER_TOO_LONG = "ANSWER_TOO_LONG"
    CANNOT_VOTE_OWN_ANSWER = "CANNOT_VOTE_OWN_ANSWER"
    INVALID_VOTE_TARGET = "INVALID_VOTE_TARGET"
    INVALID_CATEGORY = "INVALID_CATEGORY"
    INVALID_GAME_SETTINGS = "INVALID_GAME_SETTINGS"
    INSUFFICIENT_PLAYERS = "INSUFFICIENT_PLAYERS"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class GameError(Exception):
    """Base class for every error that a game action can legitimately produce."""

    http_status = 400

    def __init__(self, code: ErrorCode, message: str, details: Optional[Dict] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(GameError):
    """Game, round, question or answer does not exist."""
    http_status = 404


class InvalidPhaseError(GameError):
    """Action attempted outside the phase or game status it requires."""
    http_status = 409


class ForbiddenError(GameError):
    """Caller is not the QM, a participant or an administrator as required."""
    http_status = 403


class ConflictError(GameError):
    """Duplicate action where only one is allowed."""
    http_status = 409


class ValidationError(GameError):
    """Empty, missing or malformed input."""
    http_status = 400


class AuthenticationError(GameError):
    """No caller identity was supplied."""
    http_status = 401
