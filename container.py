"""
Service Container for BluffQuiz
Builds every service once, in dependency order, and hands out the shared instances.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Callable
from enum import Enum


class ServiceLifecycle(Enum):
    SINGLETON = "singleton"  # built once per container
    TRANSIENT = "transient"  # built on every get()


@dataclass
class ServiceDefinition:
    name: str
    factory: Callable
    dependencies: List[str] = field(default_factory=list)
    lifecycle: ServiceLifecycle = ServiceLifecycle.SINGLETON


class CircularDependencyError(Exception):
    """A service depends on itself, directly or through others."""
    pass


class ServiceNotFoundError(Exception):
    """Lookup of a name that was never registered or injected."""
    pass


def create_content_manager():
    """Question store backed by the configured questions file."""
    from src.config.game_settings import get_game_settings
    from src.content_manager import ContentManager
    return ContentManager(get_game_settings().questions_file)


def service_graph() -> List[ServiceDefinition]:
    """
    The BluffQuiz services, each with the services its factory receives.

    'socketio' is not listed: the application injects it.
    """
    from src.game_manager import GameManager
    from src.services.answer_ledger import AnswerLedger
    from src.services.broadcast_service import BroadcastService
    from src.services.concurrency_control_service import ConcurrencyControlService
    from src.services.game_flow_service import GameFlowService
    from src.services.game_lifecycle_service import GameLifecycleService
    from src.services.game_repository import GameRepository
    from src.services.roster_service import RosterService
    from src.services.round_state_presenter import RoundStatePresenter
    from src.services.scoring_service import ScoringService
    from src.services.session_service import SessionService
    from src.services.validation_service import ValidationService

    return [
        ServiceDefinition('ValidationService', ValidationService),
        ServiceDefinition('GameRepository', GameRepository),
        ServiceDefinition('ConcurrencyControlService', ConcurrencyControlService),
        ServiceDefinition('SessionService', SessionService),
        ServiceDefinition('RosterService', RosterService),
        ServiceDefinition('ContentManager', create_content_manager),
        ServiceDefinition('AnswerLedger', AnswerLedger, ['GameRepository']),
        ServiceDefinition('ScoringService', ScoringService, ['RosterService', 'AnswerLedger']),
        ServiceDefinition('RoundStatePresenter', RoundStatePresenter, ['RosterService', 'AnswerLedger']),
        ServiceDefinition('GameFlowService', GameFlowService, [
            'GameRepository', 'ConcurrencyControlService', 'RosterService',
            'AnswerLedger', 'ScoringService', 'ContentManager'
        ]),
        ServiceDefinition('GameLifecycleService', GameLifecycleService, [
            'GameRepository', 'ConcurrencyControlService', 'RosterService', 'ValidationService'
        ]),
        ServiceDefinition('BroadcastService', BroadcastService, ['socketio']),
        ServiceDefinition('GameManager', GameManager, [
            'GameLifecycleService', 'GameFlowService', 'RosterService', 'ScoringService',
            'RoundStatePresenter', 'ContentManager', 'ValidationService', 'BroadcastService'
        ]),
    ]


class ServiceContainer:
    """
    Lazily builds services from their registered factories.

    A factory receives its dependencies positionally, in the order they were
    listed at registration. Objects made elsewhere (the SocketIO server) are
    placed in the container with set_external_dependency.
    """

    def __init__(self):
        self._services: Dict[str, ServiceDefinition] = {}
        self._instances: Dict[str, Any] = {}
        self._creating: List[str] = []  # resolution stack, for cycle reports
        self._config: Dict[str, Any] = {}

    def register(
        self,
        name: str,
        factory: Callable,
        dependencies: List[str] = None,
        lifecycle: ServiceLifecycle = ServiceLifecycle.SINGLETON
    ) -> 'ServiceContainer':
        """
        Raises:
            ValueError: If the name is taken or the factory is not callable
        """
        if not callable(factory):
            raise ValueError(f"Factory for '{name}' must be callable")
        return self._add(ServiceDefinition(name, factory, list(dependencies or []), lifecycle))

    def _add(self, definition: ServiceDefinition) -> 'ServiceContainer':
        if definition.name in self._services:
            raise ValueError(f"Service '{definition.name}' is already registered")
        self._services[definition.name] = definition
        return self

    def configure_services(self) -> 'ServiceContainer':
        for definition in service_graph():
            self._add(definition)
        return self

    def set_external_dependency(self, name: str, instance: Any) -> 'ServiceContainer':
        self._instances[name] = instance
        return self

    def set_config(self, config: Dict[str, Any]) -> 'ServiceContainer':
        self._config.update(config)
        return self

    def get_config(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def get(self, name: str) -> Any:
        """
        Return the instance for name, building it and its dependencies on first use.

        Raises:
            ServiceNotFoundError: If service is not registered
            CircularDependencyError: If circular dependency detected
        """
        if name in self._instances:
            return self._instances[name]

        definition = self._services.get(name)
        if definition is None:
            raise ServiceNotFoundError(f"Service '{name}' is not registered")

        if name in self._creating:
            cycle = ' -> '.join(self._creating + [name])
            raise CircularDependencyError(f"Circular dependency detected: {cycle}")

        self._creating.append(name)
        try:
            instance = definition.factory(*(self.get(dependency) for dependency in definition.dependencies))
        finally:
            self._creating.pop()

        if definition.lifecycle == ServiceLifecycle.SINGLETON:
            self._instances[name] = instance
        return instance

    def has_service(self, name: str) -> bool:
        return name in self._services

    def get_service_names(self) -> List[str]:
        return list(self._services)

    def validate_dependencies(self) -> Dict[str, List[str]]:
        """Map each service to the dependencies that can't be resolved; empty when wiring is complete."""
        known = set(self._services) | set(self._instances)
        issues = {}
        for name, definition in self._services.items():
            missing = [dependency for dependency in definition.dependencies if dependency not in known]
            if missing:
                issues[name] = missing
        return issues

    def clear(self) -> 'ServiceContainer':
        self._services.clear()
        self._instances.clear()
        self._creating.clear()
        self._config.clear()
        return self

    def __repr__(self) -> str:
        return f"ServiceContainer(services={len(self._services)}, instances={len(self._instances)})"


_app_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    global _app_container
    if _app_container is None:
        _app_container = ServiceContainer()
    return _app_container


def configure_container(socketio=None, config=None) -> ServiceContainer:
    """
    Reset the global container and register the BluffQuiz services.

    Args:
        socketio: Flask-SocketIO instance used by the notifier
        config: Plain configuration values, from ConfigurationFactory.to_dict()

    Returns:
        Configured service container
    """
    container = get_container().clear()
    if socketio is not None:
        container.set_external_dependency('socketio', socketio)
    if config is not None:
        container.set_config(config)
    return container.configure_services()


def reset_container() -> None:
    """Drop the global container (for testing)"""
    global _app_container
    _app_container = None
