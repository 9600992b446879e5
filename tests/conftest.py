"""
Shared pytest fixtures and configuration for the Ephemera test suite.

This module provides:
- Hypothesis configuration for property-based testing
- A controllable clock
- In-memory repositories and a wired lifecycle manager
- A Flask app built on an injected dependency container
"""

import pytest
from hypothesis import HealthCheck, Phase, settings

from ephemera.app_factory import create_app
from ephemera.application.dependency_container import DependencyContainer
from ephemera.application.event_publisher import EventPublisher
from ephemera.application.file_share_service import FileShareService
from ephemera.application.reclamation_scheduler import ReclamationScheduler
from ephemera.config.settings import AppConfig
from ephemera.domain.file_storage import FileLifecycleManager
from ephemera.domain.file_storage.storage_repository import IFileStorageRepository

from tests.fixtures import FakeClock, MockFileRepository, MockStorageRepository

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile("default")


# =============================================================================
# Domain Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    """Provide a clock that only moves when advanced."""
    return FakeClock()


@pytest.fixture
def file_repository() -> MockFileRepository:
    return MockFileRepository()


@pytest.fixture
def storage_repository() -> MockStorageRepository:
    return MockStorageRepository()


@pytest.fixture
def lifecycle_manager(file_repository, storage_repository, clock) -> FileLifecycleManager:
    """Lifecycle manager over in-memory repositories and the fake clock."""
    return FileLifecycleManager(file_repository, storage_repository, clock=clock)


@pytest.fixture
def event_publisher() -> EventPublisher:
    return EventPublisher()


@pytest.fixture
def published_events(event_publisher):
    """Every domain event published during the test, in order."""
    from ephemera.domain.events import DomainEvent

    events = []
    event_publisher.subscribe(DomainEvent, events.append)
    return events


@pytest.fixture
def share_service(lifecycle_manager, event_publisher, clock) -> FileShareService:
    return FileShareService(
        lifecycle_manager,
        event_publisher=event_publisher,
        max_upload_bytes=1024,
        clock=clock,
    )


@pytest.fixture
def scheduler(lifecycle_manager, event_publisher, clock) -> ReclamationScheduler:
    return ReclamationScheduler(
        lifecycle_manager, clock=clock, interval_seconds=60, batch_size=200,
        event_publisher=event_publisher,
    )


# =============================================================================
# Flask Fixtures
# =============================================================================

@pytest.fixture
def container(share_service, scheduler, lifecycle_manager, storage_repository, event_publisher):
    """Dependency container wired with in-memory implementations."""
    container = DependencyContainer()
    container.register_singleton(IFileStorageRepository, storage_repository)
    container.register_singleton(EventPublisher, event_publisher)
    container.register_singleton(FileLifecycleManager, lifecycle_manager)
    container.register_singleton(FileShareService, share_service)
    container.register_singleton(ReclamationScheduler, scheduler)
    return container


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig.for_testing(download_base_url="https://share.example.com")


@pytest.fixture
def flask_app(app_config, container):
    """Flask app over the in-memory container; Redis reported healthy."""
    app = create_app(app_config, container=container, start_scheduler=False)
    app.config["TESTING"] = True
    app.redis_health_check = lambda: True
    return app


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()


# =============================================================================
# Pytest Configuration Hooks
# =============================================================================

def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/integration/* -> @pytest.mark.integration
    - tests/contracts/* -> @pytest.mark.contract
    - tests/e2e/* -> @pytest.mark.e2e
    - tests/property/* -> @pytest.mark.property
    """
    for item in items:
        test_path = str(item.fspath).replace("\\", "/")

        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/contracts/" in test_path:
            item.add_marker(pytest.mark.contract)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)
        elif "/property/" in test_path:
            item.add_marker(pytest.mark.property)
