"""
Game Settings Configuration Module

Provides centralized access to game-specific configuration values,
replacing hardcoded constants throughout the codebase.
"""

import logging
from typing import Dict

logger = logging.getLogger(__name__)


class GameSettings:
    """Centralized game settings management."""

    _DEFAULTS = {
        'min_players_required': 2,
        'max_players_per_game': 12,
        'default_total_rounds': 10,
        'max_total_rounds': 100,
        'max_answer_length': 200,
        'max_question_length': 500,
        'available_question_limit': 6,
        'correct_guess_points': 3,
        'correct_vote_points': 2,
        'qm_bonus_points': 3,
        'bluff_vote_points': 1,
        'exclude_guessers_from_quorum': True,
        'questions_file': 'questions.yaml',
    }

    def __init__(self, app_config=None):
        """
        Initialize game settings.

        Args:
            app_config: Application configuration instance from config_factory
        """
        self._config = app_config
        if app_config is None:
            try:
                from config_factory import get_config
                self._config = get_config()
            except (ImportError, Exception) as e:
                logger.warning(f"Could not load configuration: {e}, using defaults")
                self._config = None

    def _get(self, name: str):
        if self._config is None:
            return self._DEFAULTS[name]
        return getattr(self._config, name)

    @property
    def min_players_required(self) -> int:
        """Minimum participants needed to start a game."""
        return self._get('min_players_required')

    @property
    def max_players_per_game(self) -> int:
        return self._get('max_players_per_game')

    @property
    def default_total_rounds(self) -> int:
        return self._get('default_total_rounds')

    @property
    def max_total_rounds(self) -> int:
        return self._get('max_total_rounds')

    @property
    def max_answer_length(self) -> int:
        return self._get('max_answer_length')

    @property
    def max_question_length(self) -> int:
        return self._get('max_question_length')

    @property
    def available_question_limit(self) -> int:
        """How many unused questions the QM is offered to pick from."""
        return self._get('available_question_limit')

    @property
    def exclude_guessers_from_quorum(self) -> bool:
        return self._get('exclude_guessers_from_quorum')

    @property
    def questions_file(self) -> str:
        return self._get('questions_file')

    @property
    def scoring_points(self) -> Dict[str, int]:
        """
        Get the point value of each scoring rule.

        Returns:
            Dictionary mapping rule name to points awarded
        """
        return {
            'correct_guess': self._get('correct_guess_points'),
            'correct_vote': self._get('correct_vote_points'),
            'qm_bonus': self._get('qm_bonus_points'),
            'bluff_vote': self._get('bluff_vote_points'),
        }


# Global instance for easy access
_game_settings_instance = None


def get_game_settings(app_config=None) -> GameSettings:
    """
    Get or create the global game settings instance.

    Args:
        app_config: Optional app config to use

    Returns:
        GameSettings instance
    """
    global _game_settings_instance

    if _game_settings_instance is None or app_config is not None:
        _game_settings_instance = GameSettings(app_config)

    return _game_settings_instance


def reset_game_settings():
    """Reset the global game settings instance (mainly for testing)."""
    global _game_settings_instance
    _game_settings_instance = None
