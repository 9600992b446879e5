"""
Health Status

Aggregates the availability of the service's dependencies.
"""

import logging
from typing import Tuple

from flask import Flask

from ..config.redis_config import redis_health_check

logger = logging.getLogger(__name__)


def get_health_status(app: Flask) -> Tuple[dict, int]:
    """
    Get health status of all system components.

    Redis and the blob store are required; Celery only matters when
    reclamation runs through it.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "redis": "unknown",
        "storage": "unknown",
        "celery": "unknown",
        "reclamation": "unknown",
    }

    health_check = getattr(app, "redis_health_check", redis_health_check)
    try:
        if health_check():
            health_status["redis"] = "connected"
        else:
            health_status["redis"] = "disconnected"
            health_status["status"] = "degraded"
    except Exception as e:
        logger.warning(f"Redis health check failed: {e}")
        health_status["redis"] = f"error: {e}"
        health_status["status"] = "degraded"

    container = getattr(app, "container", None)
    try:
        storage = container.get_storage_repository() if container is not None else None
        if storage is not None and storage.is_available():
            health_status["storage"] = "available"
        else:
            health_status["storage"] = "unavailable"
            health_status["status"] = "degraded"
    except Exception as e:
        logger.warning(f"Storage health check failed: {e}")
        health_status["storage"] = f"error: {e}"
        health_status["status"] = "degraded"

    config = getattr(app, "app_config", None)
    mode = config.reclamation_mode if config is not None else "off"

    if getattr(app, "celery", None) is not None:
        health_status["celery"] = "available"
    else:
        health_status["celery"] = "unavailable"
        if mode == "celery":
            health_status["status"] = "degraded"

    scheduler = getattr(app, "reclamation_scheduler", None)
    if mode == "thread" and scheduler is not None:
        health_status["reclamation"] = scheduler.state.value if scheduler.is_running else "stopped"
    else:
        health_status["reclamation"] = mode

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
