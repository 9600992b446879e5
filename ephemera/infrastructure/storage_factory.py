"""
Storage Factory

Factory for creating the blob storage implementation based on environment.

Selection Logic:
- If GCS_BUCKET_NAME is configured, use Google Cloud Storage
- Otherwise, use the local filesystem under STORAGE_DIR
"""

import logging
import os

from ..domain.file_storage.storage_repository import IFileStorageRepository
from .local_file_storage_repository import LocalFileStorageRepository

logger = logging.getLogger(__name__)


class StorageFactory:
    """Factory for creating storage repository implementations."""

    @staticmethod
    def create_storage() -> IFileStorageRepository:
        """
        Create storage repository based on environment configuration.

        Returns:
            IFileStorageRepository implementation (either local or GCS)

        Raises:
            RuntimeError: If storage initialization fails

        Environment Variables:
            GCS_BUCKET_NAME: If set, enables GCS storage
            STORAGE_DIR: Base directory for local storage (default: /tmp/ephemera)
            GOOGLE_APPLICATION_CREDENTIALS: Path to GCS service account key (optional)
        """
        gcs_bucket_name = os.getenv("GCS_BUCKET_NAME", "").strip()

        if gcs_bucket_name:
            return StorageFactory._create_gcs_storage(gcs_bucket_name)
        return StorageFactory._create_local_storage()

    @staticmethod
    def _create_local_storage() -> IFileStorageRepository:
        storage_dir = os.getenv("STORAGE_DIR", "/tmp/ephemera")
        try:
            storage = LocalFileStorageRepository(storage_dir)
        except OSError as e:
            raise RuntimeError(f"Failed to initialize local storage: {e}") from e

        logger.info(f"Storage factory: Using local filesystem storage at {storage_dir}")
        return storage

    @staticmethod
    def _create_gcs_storage(bucket_name: str) -> IFileStorageRepository:
        """
        Create Google Cloud Storage repository.

        A misconfigured bucket is fatal; there is no fallback to local storage.
        """
        from .gcs_storage_repository import GCSStorageRepository

        try:
            storage = GCSStorageRepository(bucket_name)
        except Exception as e:
            raise RuntimeError(f"Failed to initialize GCS storage: {e}") from e

        logger.info(f"Storage factory: Using GCS storage with bucket {bucket_name}")
        return storage
