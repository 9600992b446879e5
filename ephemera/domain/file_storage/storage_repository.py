"""
Blob Storage Repository Interface

Abstract interface for file content storage operations.
Keeps the domain layer independent of where bytes physically live
(local filesystem, cloud storage).
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Optional


class IFileStorageRepository(ABC):
    """
    Unified interface for key-addressable blob storage.

    Contract Guarantees:
    - get() returns None for missing keys (no exceptions)
    - delete() succeeds when the key is already absent (idempotent)
    - exists() never raises for invalid keys
    - save() and delete() raise IOError/PermissionError on backend failure

    Thread Safety:
    - Concurrent reads of the same key never conflict
    - Keys are never reused, so delete-then-create races cannot occur
    """

    @abstractmethod
    def save(self, key: str, content: BinaryIO, content_type: Optional[str] = None) -> bool:
        """
        Save blob content under a key.

        Args:
            key: Storage key (e.g., 'uploads/<id>/report.pdf')
            content: Binary content as a file-like object
            content_type: MIME type recorded with the blob where supported

        Returns:
            True if the blob was saved

        Raises:
            PermissionError: If there are insufficient permissions to write
            IOError: If there are I/O errors during the operation
            ValueError: If key is empty
        """
        pass  # pragma: no cover

    @abstractmethod
    def get(self, key: str) -> Optional[BinaryIO]:
        """
        Open a blob for reading.

        The caller is responsible for closing the returned stream.

        Args:
            key: Storage key

        Returns:
            Readable binary stream if found, None if the blob doesn't exist

        Raises:
            IOError: If the backend fails for reasons other than absence
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a blob.

        Args:
            key: Storage key

        Returns:
            True if the blob was deleted or didn't exist

        Raises:
            PermissionError: If there are insufficient permissions to delete
            IOError: If there are I/O errors during the operation
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, key: str) -> bool:
        """
        Check if a blob exists.

        Args:
            key: Storage key

        Returns:
            True if the blob exists, False otherwise (including invalid keys)
        """
        pass  # pragma: no cover

    @abstractmethod
    def get_size(self, key: str) -> Optional[int]:
        """
        Get the size of a blob in bytes.

        Args:
            key: Storage key

        Returns:
            Size in bytes, or None if the blob doesn't exist
        """
        pass  # pragma: no cover

    def is_available(self) -> bool:
        """Report whether the backend is reachable, for health checks."""
        return True
