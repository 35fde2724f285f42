"""
Global pytest configuration and fixtures.
Provides service fixtures for proper dependency injection in tests.
"""

import pytest
import os
from unittest.mock import Mock

# Ensure testing environment
os.environ['TESTING'] = '1'


@pytest.fixture(scope="function", autouse=True)
def reset_global_state():
    """Give every test a fresh testing configuration and no cached settings or container."""
    from config_factory import reset_config, load_config_from_dict
    from container import reset_container
    from src.config.game_settings import reset_game_settings

    reset_config()
    load_config_from_dict({'environment': 'testing'})
    reset_game_settings()
    reset_container()

    yield

    reset_config()
    reset_game_settings()
    reset_container()


@pytest.fixture
def questions_file(tmp_path):
    """Questions YAML with a small, known question set."""
    from tests.helpers.game_helpers import write_questions_file
    return write_questions_file(tmp_path)


@pytest.fixture
def mock_broadcast():
    """Notifier double that records every notification."""
    return Mock()


@pytest.fixture
def services(questions_file, mock_broadcast):
    """Game services wired together around a mock notifier."""
    from tests.helpers.game_helpers import build_services
    return build_services(questions_file, mock_broadcast)


@pytest.fixture
def game_manager(services):
    return services['game_manager']


@pytest.fixture
def content_manager(services):
    return services['content_manager']


@pytest.fixture
def game_flow_service(services):
    return services['game_flow_service']


@pytest.fixture
def lifecycle_service(services):
    return services['lifecycle_service']


@pytest.fixture
def validation_service(services):
    return services['validation_service']


@pytest.fixture
def app_bundle(questions_file):
    """Flask app, Socket.IO server and container built from a testing configuration."""
    from app import create_app
    return create_app(
        config_dict={'environment': 'testing', 'questions_file': questions_file},
        async_mode='threading',
    )


@pytest.fixture
def app(app_bundle):
    """Create Flask app for testing."""
    return app_bundle[0]


@pytest.fixture
def socketio(app_bundle):
    """SocketIO instance for testing."""
    return app_bundle[1]


@pytest.fixture
def client(app):
    return app.test_client()
