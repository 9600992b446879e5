"""
Celery Application Instance

Creates the Celery app instance for use by workers and beat scheduler.
Uses the app factory so tasks resolve services from the same container.

    celery -A ephemera.celery_app worker -Q reclamation_queue
    celery -A ephemera.celery_app beat
"""

from .app_factory import create_app
from .config.celery_config import make_celery
from .tasks.reclamation_task import register_tasks

# Workers never run the in-process scheduler; beat drives reclamation
flask_app = create_app(start_scheduler=False)

celery_app = flask_app.celery or make_celery(flask_app)
flask_app.celery = celery_app

reclaim_files = register_tasks(celery_app, flask_app)
