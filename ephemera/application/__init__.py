"""
Application Layer

Use-case services, event publishing, background reclamation and dependency wiring.
"""

from .dependency_container import DependencyContainer, DependencyNotFoundError
from .event_publisher import EventPublisher
from .file_share_service import FileShareService
from .reclamation_scheduler import ReclamationScheduler, SweepReport, SweepState

__all__ = [
    "DependencyContainer",
    "DependencyNotFoundError",
    "EventPublisher",
    "FileShareService",
    "ReclamationScheduler",
    "SweepReport",
    "SweepState",
]
