"""
Validation Service for BluffQuiz

Provides input validation and normalization separated from error response handling.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from src.config.game_settings import get_game_settings
from src.core.errors import ErrorCode, ValidationError
from src.core.game_phases import EndMode

logger = logging.getLogger(__name__)


class ValidationService:
    """Service responsible for input validation."""

    MAX_DISPLAY_NAME_LENGTH = 40

    def __init__(self):
        """Initialize ValidationService with game settings"""
        self.game_settings = get_game_settings()

    def validate_request_data(self, data: Any, required_fields: Optional[list] = None) -> Dict:
        """
        Validate that request data is a dictionary holding the required fields.

        Raises:
            ValidationError: If data is not a dict or a field is missing
        """
        if not isinstance(data, dict):
            raise ValidationError(
                ErrorCode.INVALID_DATA,
                "Invalid data format - expected dictionary"
            )

        if required_fields:
            missing_fields = [f for f in required_fields if data.get(f) is None]
            if missing_fields:
                raise ValidationError(
                    ErrorCode.MISSING_DATA,
                    f"Missing required fields: {', '.join(missing_fields)}",
                    {"missing_fields": missing_fields}
                )

        return data

    def validate_id(self, value: Any, field_name: str) -> int:
        """
        Validate a numeric identifier supplied by a client.

        Returns:
            The identifier as an int

        Raises:
            ValidationError: If the value is missing or not a positive integer
        """
        if value is None:
            raise ValidationError(ErrorCode.MISSING_DATA, f"{field_name} is required")
        if isinstance(value, bool):
            raise ValidationError(ErrorCode.INVALID_DATA, f"{field_name} must be an integer")
        try:
            identifier = int(value)
        except (TypeError, ValueError):
            raise ValidationError(
                ErrorCode.INVALID_DATA,
                f"{field_name} must be an integer",
                {field_name: value}
            )
        if identifier < 1:
            raise ValidationError(ErrorCode.INVALID_DATA, f"{field_name} must be positive", {field_name: value})
        return identifier

    def validate_answer_text(self, answer_text: Any) -> str:
        """
        Validate and trim answer text.

        Raises:
            ValidationError: If the answer is missing, empty or too long
        """
        if not answer_text or not isinstance(answer_text, str):
            raise ValidationError(ErrorCode.EMPTY_ANSWER, "Answer required")

        answer_text = answer_text.strip()
        if not answer_text:
            raise ValidationError(ErrorCode.EMPTY_ANSWER, "Answer required")

        max_length = self.game_settings.max_answer_length
        if len(answer_text) > max_length:
            raise ValidationError(
                ErrorCode.ANSWER_TOO_LONG,
                f"Answer must be {max_length} characters or less",
                {"max_length": max_length, "actual_length": len(answer_text)}
            )

        return answer_text

    def validate_display_name(self, display_name: Any) -> Optional[str]:
        if display_name is None:
            return None
        if not isinstance(display_name, str):
            raise ValidationError(ErrorCode.INVALID_DATA, "Display name must be a string")
        display_name = display_name.strip()
        if len(display_name) > self.MAX_DISPLAY_NAME_LENGTH:
            raise ValidationError(
                ErrorCode.INVALID_DATA,
                f"Display name must be {self.MAX_DISPLAY_NAME_LENGTH} characters or less"
            )
        return display_name or None

    def validate_question_fields(self, question_text: Any, correct_answer: Any) -> Tuple[str, str]:
        """
        Validate the text fields of a new question.

        Raises:
            ValidationError: If either field is empty or too long
        """
        if not isinstance(question_text, str) or not question_text.strip() \
                or not isinstance(correct_answer, str) or not correct_answer.strip():
            raise ValidationError(ErrorCode.MISSING_DATA, "Question text and correct answer are required")

        question_text = question_text.strip()
        correct_answer = correct_answer.strip()
        max_length = self.game_settings.max_question_length
        if len(question_text) > max_length:
            raise ValidationError(
                ErrorCode.INVALID_DATA,
                f"Question must be {max_length} characters or less",
                {"max_length": max_length, "actual_length": len(question_text)}
            )
        if len(correct_answer) > self.game_settings.max_answer_length:
            raise ValidationError(
                ErrorCode.ANSWER_TOO_LONG,
                f"Answer must be {self.game_settings.max_answer_length} characters or less"
            )
        return question_text, correct_answer

    def validate_game_settings(self, total_rounds: Any = None, end_mode: Any = None,
                               target_points: Any = None) -> Tuple[int, EndMode, Optional[int]]:
        """
        Validate the settings of a new game.

        Args:
            total_rounds: Round limit, defaults to the configured value
            end_mode: 'rounds' or 'points', defaults to 'rounds'
            target_points: Score that ends a points game, required in points mode

        Returns:
            Tuple of (total_rounds, end_mode, target_points)

        Raises:
            ValidationError: If any setting is invalid
        """
        if total_rounds is None:
            total_rounds = self.game_settings.default_total_rounds
        if isinstance(total_rounds, bool) or not isinstance(total_rounds, int):
            raise ValidationError(ErrorCode.INVALID_GAME_SETTINGS, "total_rounds must be an integer")
        max_rounds = self.game_settings.max_total_rounds
        if total_rounds < 1 or total_rounds > max_rounds:
            raise ValidationError(
                ErrorCode.INVALID_GAME_SETTINGS,
                f"total_rounds must be between 1 and {max_rounds}",
                {"total_rounds": total_rounds}
            )

        try:
            mode = EndMode(end_mode) if end_mode is not None else EndMode.ROUNDS
        except ValueError:
            raise ValidationError(
                ErrorCode.INVALID_GAME_SETTINGS,
                "end_mode must be 'rounds' or 'points'",
                {"end_mode": end_mode}
            )

        if mode == EndMode.POINTS:
            if isinstance(target_points, bool) or not isinstance(target_points, int) or target_points < 1:
                raise ValidationError(
                    ErrorCode.INVALID_GAME_SETTINGS,
                    "target_points must be a positive integer when end_mode is 'points'",
                    {"target_points": target_points}
                )
        else:
            target_points = None

        return total_rounds, mode, target_points
