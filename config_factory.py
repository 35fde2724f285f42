"""
Configuration Factory - Centralized configuration management for BluffQuiz
Every AppConfig field can be set from an environment variable of the same
name in upper case (MAX_PLAYERS_PER_GAME, QM_BONUS_POINTS, ...).
"""

import os
import logging
from typing import Any, Dict, Optional, Tuple
from enum import Enum
from dataclasses import dataclass, asdict, fields


DEV_SECRET_KEY = 'dev-secret-key-change-in-production'


class Environment(Enum):
    """Environment types for configuration"""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


# FLASK_ENV value -> (environment, debug default); anything else is production
FLASK_ENVIRONMENTS: Dict[str, Tuple[Environment, bool]] = {
    'development': (Environment.DEVELOPMENT, True),
    'testing': (Environment.TESTING, True),
}

# Inclusive bounds for numeric settings
LIMITS: Dict[str, Tuple[int, int]] = {
    'max_players_per_game': (2, 50),
    'max_total_rounds': (1, 1000),
    'max_answer_length': (1, 2000),
    'max_question_length': (10, 5000),
    'available_question_limit': (1, 50),
    'correct_guess_points': (0, 100),
    'correct_vote_points': (0, 100),
    'qm_bonus_points': (0, 100),
    'bluff_vote_points': (0, 100),
}

TRUE_VALUES = ('true', '1', 'yes', 'on')


class ConfigError(Exception):
    """Configuration-related errors"""
    pass


@dataclass
class AppConfig:
    """Application configuration, validated on creation"""

    secret_key: str = DEV_SECRET_KEY
    debug: bool = False
    flask_env: str = 'development'
    host: str = '0.0.0.0'
    port: int = 5000

    # Lobby and round limits
    min_players_required: int = 2
    max_players_per_game: int = 12
    default_total_rounds: int = 10
    max_total_rounds: int = 100
    max_answer_length: int = 200
    max_question_length: int = 500
    available_question_limit: int = 6  # questions offered to the QM per round

    # Points per scoring rule
    correct_guess_points: int = 3
    correct_vote_points: int = 2
    qm_bonus_points: int = 3
    bluff_vote_points: int = 1

    # Voting quorum counts only players who may still vote
    exclude_guessers_from_quorum: bool = True

    questions_file: str = 'questions.yaml'

    # Gunicorn
    worker_connections: int = 1000
    timeout: int = 30
    keepalive: int = 2
    log_level: str = 'info'

    environment: Environment = Environment.DEVELOPMENT

    def __post_init__(self):
        self._validate()

    def _validate(self):
        """
        Raises:
            ConfigError: On the first value out of range
        """
        if not 1 <= self.port <= 65535:
            raise ConfigError(f"Invalid port number: {self.port}")

        for name, (low, high) in LIMITS.items():
            value = getattr(self, name)
            if not low <= value <= high:
                raise ConfigError(f"Invalid {name}: {value} (expected {low}-{high})")

        # Bounds that depend on other settings
        if not 2 <= self.min_players_required <= self.max_players_per_game:
            raise ConfigError(f"Invalid min_players_required: {self.min_players_required}")
        if not 1 <= self.default_total_rounds <= self.max_total_rounds:
            raise ConfigError(f"Invalid default_total_rounds: {self.default_total_rounds}")

        if self.is_production and self.secret_key == DEV_SECRET_KEY:
            raise ConfigError("Production environment requires a secure SECRET_KEY")

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING


class ConfigurationFactory:
    """
    Singleton that loads, holds and overrides the application configuration.

    Configuration comes either from the environment (deployments) or from a
    dict (tests). Overrides registered with override_setting survive a reload
    from the environment.
    """

    _instance: Optional['ConfigurationFactory'] = None
    _config: Optional[AppConfig] = None

    def __new__(cls) -> 'ConfigurationFactory':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not hasattr(self, '_initialized'):
            self._logger = logging.getLogger(__name__)
            self._env_overrides: Dict[str, Any] = {}
            self._initialized = True

    def _read_env(self, key: str, var_type: type, default: Any) -> Any:
        """Read one environment variable, converted to the field's type."""
        value = os.environ.get(key)
        if value is None:
            return default
        if var_type is bool:
            return value.lower() in TRUE_VALUES
        if var_type is int:
            try:
                return int(value)
            except ValueError:
                self._logger.warning(f"Invalid integer value for {key}: {value}, using default: {default}")
                return default
        return value

    def load_from_environment(self, env_prefix: str = '') -> AppConfig:
        """
        Load configuration from environment variables.

        Args:
            env_prefix: Optional prefix for environment variables (e.g., 'BLUFFQUIZ_')

        Returns:
            Configured AppConfig instance
        """
        flask_env = os.environ.get(f"{env_prefix}FLASK_ENV", 'development')
        environment, debug = FLASK_ENVIRONMENTS.get(flask_env, (Environment.PRODUCTION, False))

        values: Dict[str, Any] = {'flask_env': flask_env, 'environment': environment}
        for config_field in fields(AppConfig):
            if config_field.name in values:
                continue
            default = debug if config_field.name == 'debug' else config_field.default
            env_key = f"{env_prefix}{config_field.name.upper()}"
            values[config_field.name] = self._read_env(env_key, config_field.type, default)

        values.update((k, v) for k, v in self._env_overrides.items() if k in values)

        self._config = AppConfig(**values)
        self._logger.info(f"Configuration loaded for environment: {environment.value}")
        return self._config

    def load_from_dict(self, config_dict: Dict[str, Any]) -> AppConfig:
        """Load configuration from a dictionary; 'environment' may be given by name."""
        config_dict = dict(config_dict)
        if isinstance(config_dict.get('environment'), str):
            config_dict['environment'] = Environment(config_dict['environment'])

        self._config = AppConfig(**config_dict)
        return self._config

    def override_setting(self, key: str, value: Any) -> 'ConfigurationFactory':
        """
        Override one setting, revalidating the loaded configuration.

        Raises:
            ConfigError: If the new value is invalid
        """
        self._env_overrides[key] = value

        if self._config and hasattr(self._config, key):
            setattr(self._config, key, value)
            self._config._validate()

        return self

    def get_config(self) -> AppConfig:
        """
        Get the current configuration.

        Raises:
            ConfigError: If no configuration has been loaded
        """
        if self._config is None:
            raise ConfigError("Configuration not loaded. Call load_from_environment() or load_from_dict() first.")
        return self._config

    def reset(self) -> 'ConfigurationFactory':
        self._config = None
        self._env_overrides.clear()
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Current configuration as plain values."""
        config = self.get_config()
        config_dict = asdict(config)
        config_dict['environment'] = config.environment.value
        return config_dict

    def get_flask_config(self) -> Dict[str, Any]:
        """Settings for Flask's app.config.update()."""
        config = self.get_config()
        return {
            'SECRET_KEY': config.secret_key,
            'DEBUG': config.debug,
            'ENV': config.flask_env,
            'QUESTIONS_FILE': config.questions_file,
        }


_config_factory = ConfigurationFactory()


def get_config() -> AppConfig:
    return _config_factory.get_config()


def load_config(env_prefix: str = '') -> AppConfig:
    return _config_factory.load_from_environment(env_prefix)


def load_config_from_dict(config_dict: Dict[str, Any]) -> AppConfig:
    return _config_factory.load_from_dict(config_dict)


def override_config(key: str, value: Any) -> ConfigurationFactory:
    return _config_factory.override_setting(key, value)


def reset_config() -> ConfigurationFactory:
    """Forget the loaded configuration and any overrides."""
    return _config_factory.reset()
