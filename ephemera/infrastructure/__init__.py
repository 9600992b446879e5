"""
Infrastructure Layer

Concrete adapters for Redis metadata persistence and blob storage.
"""

from .local_file_storage_repository import LocalFileStorageRepository
from .redis_file_repository import RedisFileRepository
from .redis_repository import RedisConnectionManager, RedisRepository
from .storage_factory import StorageFactory

__all__ = [
    "LocalFileStorageRepository",
    "RedisFileRepository",
    "RedisConnectionManager",
    "RedisRepository",
    "StorageFactory",
]
