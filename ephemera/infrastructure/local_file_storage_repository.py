"""
Local File Storage Repository Implementation

Concrete implementation of IFileStorageRepository for the local filesystem.
Blobs are written under a base directory using their storage key as the
relative path.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Optional

from ..domain.file_storage.storage_repository import IFileStorageRepository

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class LocalFileStorageRepository(IFileStorageRepository):
    """
    Local filesystem implementation of IFileStorageRepository.

    Writes go to a temporary file in the target directory and are renamed
    into place, so readers never observe a partially written blob.

    Attributes:
        base_path: Base directory path for blob storage
    """

    def __init__(self, base_path: str = "/tmp/ephemera"):
        """
        Initialize the local file storage repository.

        Args:
            base_path: Base directory for blob storage (default: /tmp/ephemera)
        """
        self.base_path = Path(base_path)
        self._ensure_base_directory()

    def _ensure_base_directory(self) -> None:
        """
        Ensure the base storage directory exists.

        Raises:
            PermissionError: If insufficient permissions to create directory
            OSError: If directory creation fails for other reasons
        """
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise PermissionError(
                f"Insufficient permissions to create storage directory: {self.base_path}"
            ) from e
        except OSError as e:
            raise OSError(
                f"Failed to create storage directory: {self.base_path}"
            ) from e

    def _resolve(self, key: str) -> Optional[Path]:
        """Map a key to a path inside base_path, or None if it escapes it."""
        if not key or not key.strip():
            return None
        full_path = (self.base_path / key).resolve()
        base = self.base_path.resolve()
        if full_path == base or base not in full_path.parents:
            return None
        return full_path

    # IFileStorageRepository interface methods

    def save(self, key: str, content: BinaryIO, content_type: Optional[str] = None) -> bool:
        """
        Save blob content to the filesystem.

        The content type is not recorded; local blobs are served with the
        MIME type held in the metadata record.

        Raises:
            PermissionError: If there are insufficient permissions to write
            IOError: If there are I/O errors during the operation
            ValueError: If key is empty or escapes the base directory
        """
        full_path = self._resolve(key)
        if full_path is None:
            raise ValueError(f"Invalid storage key: {key!r}")

        tmp_name = None
        try:
            fd, tmp_name = self._create_temp_file(full_path.parent)
            with os.fdopen(fd, "wb") as f:
                while True:
                    chunk = content.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    f.write(chunk)

            os.replace(tmp_name, full_path)
            tmp_name = None
            return True

        except PermissionError:
            raise
        except OSError as e:
            raise IOError(f"Failed to save blob {key}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def _create_temp_file(self, directory: Path):
        directory.mkdir(parents=True, exist_ok=True)
        try:
            return tempfile.mkstemp(dir=directory, prefix=".upload-")
        except FileNotFoundError:
            # Pruned by a concurrent delete between mkdir and mkstemp
            directory.mkdir(parents=True, exist_ok=True)
            return tempfile.mkstemp(dir=directory, prefix=".upload-")

    def get(self, key: str) -> Optional[BinaryIO]:
        """
        Open a blob for streaming.

        Returns:
            Open binary file handle, or None if the blob doesn't exist

        Raises:
            IOError: If the blob exists but cannot be opened
        """
        full_path = self._resolve(key)
        if full_path is None or not full_path.is_file():
            return None

        try:
            return open(full_path, "rb")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise IOError(f"Failed to open blob {key}: {e}") from e

    def delete(self, key: str) -> bool:
        """
        Delete a blob and any directories below the top level that it leaves empty.

        Idempotent: deleting a missing blob returns True.

        Raises:
            PermissionError: If there are insufficient permissions to delete
            IOError: If there are I/O errors during the operation
        """
        full_path = self._resolve(key)
        if full_path is None:
            return True

        try:
            full_path.unlink()
        except FileNotFoundError:
            return True
        except PermissionError:
            raise
        except OSError as e:
            raise IOError(f"Failed to delete blob {key}: {e}") from e

        self._remove_empty_parents(full_path.parent)
        return True

    def _remove_empty_parents(self, directory: Path) -> None:
        """Prune emptied directories, keeping the top-level ones such as uploads/."""
        base = self.base_path.resolve()
        while base in directory.parent.parents:
            try:
                directory.rmdir()
            except OSError:
                # Not empty, or removed concurrently
                return
            directory = directory.parent

    def exists(self, key: str) -> bool:
        """Check if a blob exists. Never raises."""
        try:
            full_path = self._resolve(key)
            return full_path is not None and full_path.is_file()
        except (OSError, ValueError):
            return False

    def get_size(self, key: str) -> Optional[int]:
        """Size of a blob in bytes, or None if it doesn't exist."""
        try:
            full_path = self._resolve(key)
            if full_path is None or not full_path.is_file():
                return None
            return full_path.stat().st_size
        except (OSError, ValueError):
            return None

    def is_available(self) -> bool:
        """True when the base directory is writable."""
        return self.base_path.is_dir() and os.access(self.base_path, os.W_OK)
