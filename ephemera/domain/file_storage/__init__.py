"""
File Storage Domain

Handles bounded-access file storage, token-based access, and reclamation.
"""

from .entities import SharedFile
from .repositories import FileRepository
from .services import FileLifecycleManager
from .storage_repository import IFileStorageRepository
from .value_objects import DownloadToken, InvalidDownloadTokenError, StorageKey

__all__ = [
    "SharedFile",
    "FileLifecycleManager",
    "FileRepository",
    "IFileStorageRepository",
    "DownloadToken",
    "InvalidDownloadTokenError",
    "StorageKey",
]
