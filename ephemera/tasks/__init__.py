"""
Celery Tasks

Background tasks for periodic file reclamation.
"""

from .reclamation_task import LOCK_NAME, register_tasks, run_reclamation

__all__ = ["LOCK_NAME", "register_tasks", "run_reclamation"]
