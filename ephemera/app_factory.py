"""
Application Factory

Creates and configures the Flask application with all dependencies.
Tests pass their own config and a pre-wired DependencyContainer.
"""

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from .api.health import get_health_status
from .api.identity import header_identity_resolver
from .application.dependency_container import DependencyContainer
from .application.event_publisher import EventPublisher
from .application.file_share_service import FileShareService
from .application.reclamation_scheduler import ReclamationScheduler
from .config.celery_config import make_celery
from .config.logging_config import setup_logging
from .config.redis_config import get_redis_repository, init_redis
from .config.settings import AppConfig
from .domain.file_storage import FileLifecycleManager, FileRepository
from .domain.file_storage.storage_repository import IFileStorageRepository
from .infrastructure.redis_file_repository import RedisFileRepository
from .infrastructure.redis_repository import RedisRepository

logger = logging.getLogger(__name__)

# Room for multipart boundaries and form fields on top of the file itself
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def create_app(
    config: Optional[AppConfig] = None,
    container: Optional[DependencyContainer] = None,
    start_scheduler: bool = True,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None
        container: Pre-wired container; when None, Redis-backed services are built
        start_scheduler: Start the in-process reclamation thread when mode is "thread"

    Returns:
        Configured Flask application
    """
    setup_logging()

    if config is None:
        config = AppConfig()

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes + MULTIPART_OVERHEAD_BYTES
    app.app_config = config
    app.identity_resolver = header_identity_resolver(config.identity_header)

    CORS(
        app,
        resources={
            r"/*": {
                "origins": "*",
                "methods": ["GET", "POST", "DELETE", "OPTIONS"],
                "allow_headers": ["Content-Type", "Authorization", config.identity_header],
                "expose_headers": ["Content-Type", "Content-Disposition", "Content-Length"],
                "max_age": 3600,
            }
        },
    )

    _initialize_infrastructure(app, config)

    if container is None:
        container = _initialize_services(config)
    app.container = container

    app.reclamation_scheduler = (
        container.resolve(ReclamationScheduler)
        if container.is_registered(ReclamationScheduler)
        else None
    )
    if start_scheduler and config.reclamation_mode == "thread" and app.reclamation_scheduler:
        app.reclamation_scheduler.start()

    _register_blueprints(app, config)
    _register_health_endpoint(app)

    return app


def _initialize_infrastructure(app: Flask, config: AppConfig) -> None:
    """
    Initialize Celery when enabled.

    Celery is optional for the web process; without it the health
    endpoint reports it unavailable.
    """
    app.celery = None
    if not config.celery_enabled:
        return

    try:
        app.celery = make_celery(app)
        logger.info("Celery initialized successfully")
    except Exception as e:
        logger.warning(f"Could not initialize Celery: {e}")


def _initialize_services(config: AppConfig) -> DependencyContainer:
    """
    Build the production object graph and register it in a container.

    Order: infrastructure adapters, then domain services, then
    application services.
    """
    container = DependencyContainer()

    # Infrastructure
    init_redis()
    redis_repo = get_redis_repository()
    container.register_singleton(RedisRepository, redis_repo)

    file_repository = RedisFileRepository(redis_repo)
    container.register_singleton(FileRepository, file_repository)

    storage_repository = container.get_storage_repository()
    container.register_singleton(IFileStorageRepository, storage_repository)

    event_publisher = EventPublisher()
    container.setup_event_handlers(event_publisher)
    container.register_singleton(EventPublisher, event_publisher)

    # Domain
    lifecycle_manager = FileLifecycleManager(file_repository, storage_repository)
    container.register_singleton(FileLifecycleManager, lifecycle_manager)

    # Application
    container.register_singleton(
        FileShareService,
        FileShareService(
            lifecycle_manager,
            event_publisher=event_publisher,
            max_upload_bytes=config.max_upload_bytes,
            require_auth_for_upload=config.require_auth_for_upload,
        ),
    )
    container.register_singleton(
        ReclamationScheduler,
        ReclamationScheduler(
            lifecycle_manager,
            interval_seconds=config.reclamation_interval_seconds,
            batch_size=config.reclamation_batch_size,
            event_publisher=event_publisher,
        ),
    )

    logger.info("Application services initialized")
    return container


def _register_blueprints(app: Flask, config: AppConfig) -> None:
    """Register API blueprints."""
    from .api.v1 import create_api_blueprint

    app.register_blueprint(create_api_blueprint(config.api_version))

    logger.info(
        f"API {config.api_version} registered at {config.api_prefix} "
        f"with Swagger UI at {config.api_prefix}/docs"
    )


def _register_health_endpoint(app: Flask) -> None:
    """Register the top-level health check endpoint."""

    @app.route("/health", methods=["GET"])
    def health():
        health_status, status_code = get_health_status(app)
        return jsonify(health_status), status_code
