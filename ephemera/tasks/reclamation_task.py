"""
Reclamation Task

Celery beat task that runs one reclamation sweep. Thin wrapper that
delegates to the ReclamationScheduler resolved from the dependency
container.
"""

import logging
import uuid
from typing import Any, Dict

from redis.exceptions import LockError

from ..application.dependency_container import DependencyNotFoundError
from ..application.reclamation_scheduler import ReclamationScheduler, SweepReport
from ..domain.clock import utcnow
from ..infrastructure.redis_repository import RedisRepository

logger = logging.getLogger(__name__)

LOCK_NAME = "reclamation"


def run_reclamation(container, lock_timeout: int = 300) -> Dict[str, Any]:
    """
    Run one sweep under a cluster-wide lock.

    When another worker holds the lock the run is reported as skipped.

    Args:
        container: DependencyContainer holding the scheduler and Redis repository
        lock_timeout: Seconds after which a crashed holder's lock expires

    Returns:
        SweepReport as a dictionary
    """
    scheduler = container.resolve(ReclamationScheduler)

    try:
        redis_repo = container.resolve(RedisRepository)
    except DependencyNotFoundError:
        logger.debug("No Redis repository registered, sweeping without a cluster lock")
        return scheduler.run_sweep().to_dict()

    try:
        with redis_repo.distributed_lock(LOCK_NAME, timeout=lock_timeout, blocking_timeout=0):
            report = scheduler.run_sweep()
    except LockError:
        logger.info("Reclamation lock held by another worker, skipping")
        now = utcnow()
        report = SweepReport(
            sweep_id=uuid.uuid4().hex, started_at=now, finished_at=now, skipped=True
        )

    return report.to_dict()


def register_tasks(celery_app, flask_app):
    """
    Register the reclamation task on a Celery app.

    Returns:
        The registered task
    """

    @celery_app.task(bind=True, name="tasks.reclaim_files")
    def reclaim_files(self):
        """
        Periodic task removing expired and exhausted files.

        Returns:
            dict: Sweep report with counts and errors
        """
        logger.info("Starting reclamation task")
        report = run_reclamation(flask_app.container)
        logger.info(
            f"Reclamation task finished: purged={report['purged']}, "
            f"failed={report['failed']}, skipped={report['skipped']}"
        )
        return report

    return reclaim_files
