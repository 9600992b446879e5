"""
Dependency Injection Container

Manages service lifecycles and dependency resolution.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class DependencyNotFoundError(Exception):
    """Raised when attempting to resolve an unregistered dependency."""
    pass


class DependencyContainer:
    """
    Dependency injection container for managing service lifecycles.

    Supports singleton (single instance) and transient (factory-created)
    registration patterns. Thread-safe for concurrent access.
    """

    def __init__(self):
        """Initialize the dependency container."""
        self._singletons: Dict[Type, Any] = {}
        self._transients: Dict[Type, Callable[[], Any]] = {}
        self._overrides: Dict[Type, Any] = {}
        self._lock = threading.Lock()

        # Lazily created blob store
        self._storage_repository: Optional[Any] = None

        logger.debug("DependencyContainer initialized")

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        """
        Register a singleton service (single instance shared across all resolutions).

        Example:
            container.register_singleton(FileLifecycleManager, manager)
        """
        with self._lock:
            self._singletons[interface] = implementation
            logger.debug(f"Registered singleton: {interface.__name__}")

    def register_transient(self, interface: Type[T], factory: Callable[[], T]) -> None:
        """
        Register a transient service (new instance created on each resolution).

        Args:
            interface: The interface or class type to register
            factory: A callable that creates new instances
        """
        with self._lock:
            self._transients[interface] = factory
            logger.debug(f"Registered transient: {interface.__name__}")

    def resolve(self, interface: Type[T]) -> T:
        """
        Resolve a registered service.

        Overrides win over singletons, which win over transients.

        Raises:
            DependencyNotFoundError: If the interface is not registered
        """
        with self._lock:
            if interface in self._overrides:
                return self._overrides[interface]

            if interface in self._singletons:
                return self._singletons[interface]

            if interface not in self._transients:
                raise DependencyNotFoundError(
                    f"No registration found for type: {interface.__name__}"
                )
            factory = self._transients[interface]

        # Outside the lock so factories can resolve other dependencies
        return factory()

    def override(self, interface: Type[T], implementation: T) -> None:
        """Override a registered service (primarily for testing)."""
        with self._lock:
            self._overrides[interface] = implementation
            logger.debug(f"Overridden: {interface.__name__}")

    def clear_overrides(self) -> None:
        """Clear all overrides."""
        with self._lock:
            self._overrides.clear()

    def is_registered(self, interface: Type) -> bool:
        """True if registered as singleton, transient or override."""
        with self._lock:
            return (
                interface in self._singletons or
                interface in self._transients or
                interface in self._overrides
            )

    def get_storage_repository(self):
        """
        Get or create the blob store singleton.

        Uses a registered IFileStorageRepository when there is one,
        otherwise builds one through StorageFactory (local or GCS based
        on environment).
        """
        from ..domain.file_storage.storage_repository import IFileStorageRepository

        if self.is_registered(IFileStorageRepository):
            return self.resolve(IFileStorageRepository)

        if self._storage_repository is None:
            from ..infrastructure.storage_factory import StorageFactory
            self._storage_repository = StorageFactory.create_storage()
            logger.debug("Created storage repository singleton via StorageFactory")

        return self._storage_repository

    def setup_event_handlers(self, event_publisher, event_handler_classes: Optional[List[Type]] = None) -> None:
        """
        Subscribe infrastructure event handlers to every domain event.

        Args:
            event_publisher: EventPublisher instance to subscribe handlers to
            event_handler_classes: Handler classes taking a logger; defaults to LoggingEventHandler
        """
        from ..domain.events import DomainEvent
        from ..infrastructure.event_handlers.logging_handler import LoggingEventHandler

        if event_handler_classes is None:
            event_handler_classes = [LoggingEventHandler]

        for handler_class in event_handler_classes:
            handler = handler_class(logging.getLogger(f"ephemera.events.{handler_class.__name__}"))
            event_publisher.subscribe(DomainEvent, handler.handle)
            logger.debug(f"Subscribed {handler_class.__name__} to domain events")
