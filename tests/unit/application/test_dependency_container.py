"""
Unit tests for DependencyContainer.
"""

import pytest

from ephemera.application.dependency_container import (
    DependencyContainer,
    DependencyNotFoundError,
)
from ephemera.application.event_publisher import EventPublisher
from ephemera.domain.events import DomainEvent
from ephemera.domain.file_storage.storage_repository import IFileStorageRepository
from ephemera.infrastructure.local_file_storage_repository import LocalFileStorageRepository

from tests.fixtures import MockStorageRepository


class Service:
    pass


class TestRegistration:
    """Test singleton, transient and override resolution."""

    def test_singleton_returns_same_instance(self):
        container = DependencyContainer()
        instance = Service()
        container.register_singleton(Service, instance)

        assert container.resolve(Service) is instance
        assert container.resolve(Service) is instance

    def test_transient_returns_new_instances(self):
        container = DependencyContainer()
        container.register_transient(Service, Service)

        assert container.resolve(Service) is not container.resolve(Service)

    def test_override_wins_until_cleared(self):
        container = DependencyContainer()
        original, replacement = Service(), Service()
        container.register_singleton(Service, original)

        container.override(Service, replacement)
        assert container.resolve(Service) is replacement

        container.clear_overrides()
        assert container.resolve(Service) is original

    def test_unregistered_raises(self):
        with pytest.raises(DependencyNotFoundError, match="Service"):
            DependencyContainer().resolve(Service)

    def test_is_registered(self):
        container = DependencyContainer()
        assert not container.is_registered(Service)

        container.register_transient(Service, Service)
        assert container.is_registered(Service)


class TestStorageRepository:
    """Test blob store resolution."""

    def test_prefers_registered_repository(self):
        container = DependencyContainer()
        storage = MockStorageRepository()
        container.register_singleton(IFileStorageRepository, storage)

        assert container.get_storage_repository() is storage

    def test_builds_local_storage_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.delenv("GCS_BUCKET_NAME", raising=False)
        monkeypatch.setenv("STORAGE_DIR", str(tmp_path))
        container = DependencyContainer()

        storage = container.get_storage_repository()

        assert isinstance(storage, LocalFileStorageRepository)
        assert container.get_storage_repository() is storage


class TestEventHandlers:
    """Test default handler wiring."""

    def test_logging_handler_subscribed_to_all_events(self):
        publisher = EventPublisher()

        DependencyContainer().setup_event_handlers(publisher)

        assert publisher.handler_count(DomainEvent) == 1
