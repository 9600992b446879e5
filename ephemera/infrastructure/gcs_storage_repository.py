"""
Google Cloud Storage Repository Implementation

Concrete implementation of IFileStorageRepository backed by a GCS bucket,
using the google-cloud-storage client.
"""

import logging
import os
from typing import BinaryIO, Optional

from google.cloud import storage
from google.cloud.exceptions import GoogleCloudError, NotFound
from google.oauth2 import service_account

from ..domain.file_storage.storage_repository import IFileStorageRepository

logger = logging.getLogger(__name__)


def _is_permission_error(error: Exception) -> bool:
    return "403" in str(error) or "permission" in str(error).lower()


class GCSStorageRepository(IFileStorageRepository):
    """
    Google Cloud Storage implementation of IFileStorageRepository.

    Thread Safety:
        The GCS client handles concurrent operations safely.

    Attributes:
        bucket_name: Name of the GCS bucket for blob storage
        client: Google Cloud Storage client instance
        bucket: GCS bucket object
    """

    def __init__(self, bucket_name: str, client: Optional[storage.Client] = None):
        """
        Initialize the GCS storage repository.

        Credentials come from GOOGLE_APPLICATION_CREDENTIALS when it points
        at a service account file, otherwise from the default environment.

        Args:
            bucket_name: Name of the GCS bucket to use for storage
            client: Preconfigured client (optional)

        Raises:
            ValueError: If bucket_name is empty
            GoogleCloudError: If GCS client initialization fails
        """
        if not bucket_name or not bucket_name.strip():
            raise ValueError("bucket_name cannot be empty")

        self.bucket_name = bucket_name
        self.client = client or self._create_client()
        self.bucket = self.client.bucket(bucket_name)

    @staticmethod
    def _create_client() -> storage.Client:
        credentials_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
        if credentials_path and os.path.exists(credentials_path):
            credentials = service_account.Credentials.from_service_account_file(credentials_path)
            logger.info(f"GCS client initialized with service account: {credentials_path}")
            return storage.Client(credentials=credentials)
        return storage.Client()

    def save(self, key: str, content: BinaryIO, content_type: Optional[str] = None) -> bool:
        """
        Upload blob content to the bucket.

        Raises:
            PermissionError: If there are insufficient permissions to write
            IOError: If the upload fails
            ValueError: If key is empty
        """
        if not key or not key.strip():
            raise ValueError("key cannot be empty")

        try:
            blob = self.bucket.blob(key)
            if hasattr(content, "seek"):
                content.seek(0)
            blob.upload_from_file(content, content_type=content_type)
            return True
        except GoogleCloudError as e:
            if _is_permission_error(e):
                raise PermissionError(f"Insufficient permissions to write to GCS: {e}") from e
            raise IOError(f"Failed to save blob to GCS: {e}") from e

    def get(self, key: str) -> Optional[BinaryIO]:
        """
        Open a blob for streaming reads.

        Returns:
            Readable blob stream, or None if the blob doesn't exist

        Raises:
            IOError: If GCS fails for reasons other than absence
        """
        if not key or not key.strip():
            return None

        try:
            blob = self.bucket.blob(key)
            if not blob.exists():
                return None
            return blob.open("rb")
        except NotFound:
            return None
        except GoogleCloudError as e:
            raise IOError(f"Failed to read blob from GCS: {e}") from e

    def delete(self, key: str) -> bool:
        """
        Delete a blob. Idempotent: a missing blob returns True.

        Raises:
            PermissionError: If there are insufficient permissions to delete
            IOError: If the delete fails
        """
        if not key or not key.strip():
            return True

        try:
            self.bucket.blob(key).delete()
            return True
        except NotFound:
            return True
        except GoogleCloudError as e:
            if _is_permission_error(e):
                raise PermissionError(f"Insufficient permissions to delete from GCS: {e}") from e
            raise IOError(f"Failed to delete blob from GCS: {e}") from e

    def exists(self, key: str) -> bool:
        """Check if a blob exists. Never raises."""
        if not key or not key.strip():
            return False
        try:
            return self.bucket.blob(key).exists()
        except GoogleCloudError:
            return False

    def get_size(self, key: str) -> Optional[int]:
        """Size of a blob in bytes, or None if it doesn't exist."""
        if not key or not key.strip():
            return None
        try:
            blob = self.bucket.get_blob(key)
            return blob.size if blob is not None else None
        except GoogleCloudError:
            return None

    def is_available(self) -> bool:
        """True when the bucket can be reached."""
        try:
            return self.bucket.exists()
        except GoogleCloudError as e:
            logger.warning(f"GCS bucket {self.bucket_name} unreachable: {e}")
            return False
