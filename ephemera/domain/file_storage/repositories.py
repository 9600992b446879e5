"""
File Storage Repositories

Repository interface for file metadata persistence.
Concrete implementations are in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .entities import SharedFile


class FileRepository(ABC):
    """
    Abstract repository interface for file metadata persistence.

    Contract Guarantees:
    - id, download_token and storage_key are unique; insert() enforces it
    - increment_download_count() is a single conditional update, never a
      read-check-then-write at the caller
    - delete() is idempotent
    - Backend failures raise StorageError; absence is reported with None/False
    """

    @abstractmethod
    def insert(self, file: SharedFile) -> None:
        """
        Insert a new file record.

        Args:
            file: SharedFile to persist

        Raises:
            FileConflictError: If id, download_token or storage_key is already taken
            StorageError: If the backend fails
        """
        pass  # pragma: no cover

    @abstractmethod
    def get_by_id(self, file_id: str) -> Optional[SharedFile]:
        """
        Retrieve file by id.

        Args:
            file_id: File identifier

        Returns:
            SharedFile if found, None otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def get_by_token(self, token: str) -> Optional[SharedFile]:
        """
        Retrieve file by download token.

        Args:
            token: File access token

        Returns:
            SharedFile if found, None otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_by_owner(self, owner_id: str) -> List[SharedFile]:
        """
        List files owned by an identity.

        Args:
            owner_id: Owner identity

        Returns:
            Files ordered by created_at, most recent first
        """
        pass  # pragma: no cover

    @abstractmethod
    def increment_download_count(self, file_id: str, now: datetime) -> Optional[SharedFile]:
        """
        Atomically add one to download_count if the bound allows it.

        Equivalent to ``UPDATE ... SET download_count = download_count + 1
        WHERE id = ? AND (max_downloads IS NULL OR download_count < max_downloads)``.

        Args:
            file_id: File identifier
            now: Timestamp recorded as updated_at

        Returns:
            The updated SharedFile, or None when no record was updated
            (record missing or download limit reached)
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, file_id: str) -> bool:
        """
        Delete file metadata.

        Args:
            file_id: File identifier

        Returns:
            True if a record was deleted, False if it was already absent
        """
        pass  # pragma: no cover

    @abstractmethod
    def find_expired(self, now: datetime, limit: int) -> List[SharedFile]:
        """
        Find records whose expires_at is at or before ``now``.

        Args:
            now: Reference time
            limit: Maximum number of records to return

        Returns:
            Expired records, oldest expiry first
        """
        pass  # pragma: no cover

    @abstractmethod
    def find_exhausted(self, limit: int) -> List[SharedFile]:
        """
        Find bounded records with download_count >= max_downloads.

        Args:
            limit: Maximum number of records to return

        Returns:
            Exhausted records
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, file_id: str) -> bool:
        """
        Check if file metadata exists.

        Args:
            file_id: File identifier

        Returns:
            True if exists, False otherwise
        """
        pass  # pragma: no cover
