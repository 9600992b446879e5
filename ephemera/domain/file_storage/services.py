"""
File Storage Services

Domain service that owns the lifecycle of a shared file: the metadata
record and its content blob are created, read, counted and destroyed
together.
"""

import logging
from datetime import datetime
from io import BytesIO
from typing import BinaryIO, List, Optional, Tuple

from ..clock import Clock, to_naive_utc, utcnow
from ..errors import (
    DownloadLimitExceededError,
    FileConflictError,
    SharedFileNotFoundError,
    StorageError,
    ValidationError,
)
from .entities import SharedFile
from .repositories import FileRepository
from .storage_repository import IFileStorageRepository

logger = logging.getLogger(__name__)


class FileLifecycleManager:
    """
    Domain service for bounded-access file management.

    Coordinates the metadata repository and the blob store:

    - create: blob first, then metadata; a failed insert deletes the blob
      it just wrote (compensation), so no blob outlives a failed upload
    - register_download: one conditional update in the repository, never
      a read-check-then-write here
    - delete: blob first, then metadata; at worst a dangling record is
      left behind, which reclamation finds again
    """

    def __init__(
        self,
        file_repository: FileRepository,
        storage_repository: IFileStorageRepository,
        clock: Clock = utcnow,
    ):
        """
        Initialize FileLifecycleManager with its collaborators.

        Args:
            file_repository: Repository for file metadata persistence
            storage_repository: Blob store holding file content
            clock: Callable returning the current naive UTC time
        """
        self.file_repo = file_repository
        self.storage_repo = storage_repository
        self.clock = clock

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(
        self,
        content: bytes,
        original_name: str,
        mime_type: str,
        size_bytes: int,
        expires_at: datetime,
        owner_id: Optional[str] = None,
        max_downloads: Optional[int] = None,
    ) -> SharedFile:
        """
        Store a new file and its metadata.

        Args:
            content: File bytes
            original_name: Name supplied by the uploader
            mime_type: Content type
            size_bytes: Declared size, must equal len(content)
            expires_at: Expiry moment, strictly in the future
            owner_id: Uploader identity, None for anonymous uploads
            max_downloads: Download budget (>= 0), None for unbounded

        Returns:
            The persisted SharedFile

        Raises:
            ValidationError: If a precondition is violated
            StorageError: If the blob store or metadata backend fails
            FileConflictError: If identifiers collide twice in a row
        """
        now = self.clock()
        expires_at = self._validate_create(
            content, original_name, mime_type, size_bytes, expires_at, max_downloads, now
        )

        file = SharedFile.create(
            original_name=original_name,
            mime_type=mime_type,
            size_bytes=size_bytes,
            expires_at=expires_at,
            owner_id=owner_id,
            max_downloads=max_downloads,
            now=now,
        )

        try:
            return self._store(file, content)
        except FileConflictError as e:
            logger.warning(
                f"Identifier collision on {e.field or 'unknown field'} for file {file.id}, "
                f"retrying with fresh identifiers"
            )
            return self._store(file.regenerate_identifiers(), content)

    def _store(self, file: SharedFile, content: bytes) -> SharedFile:
        """Write the blob, then the record, compensating the blob on failure."""
        self._write_blob(file, content)

        try:
            self.file_repo.insert(file)
        except (FileConflictError, StorageError):
            self._compensate_blob(file)
            raise
        except Exception as e:
            self._compensate_blob(file)
            raise StorageError(f"Failed to save metadata for file {file.id}: {e}", e) from e

        logger.info(
            f"Stored file {file.id} ({file.size_bytes} bytes, expires {file.expires_at.isoformat()}, "
            f"max_downloads={file.max_downloads})"
        )
        return file

    def _write_blob(self, file: SharedFile, content: bytes) -> None:
        try:
            saved = self.storage_repo.save(file.storage_key, BytesIO(content), file.mime_type)
        except OSError as e:
            raise StorageError(f"Failed to write blob {file.storage_key}: {e}", e) from e

        if not saved:
            raise StorageError(f"Blob store refused to write {file.storage_key}")

    def _compensate_blob(self, file: SharedFile) -> None:
        try:
            self.storage_repo.delete(file.storage_key)
            logger.info(f"Removed blob {file.storage_key} after failed metadata insert")
        except OSError as e:
            # The original insert error is what the caller sees
            logger.error(
                f"Orphaned blob {file.storage_key}: compensation delete failed: {e}",
                exc_info=True,
            )

    @staticmethod
    def _validate_create(
        content: bytes,
        original_name: str,
        mime_type: str,
        size_bytes: int,
        expires_at: datetime,
        max_downloads: Optional[int],
        now: datetime,
    ) -> datetime:
        if not isinstance(content, (bytes, bytearray)):
            raise ValidationError("content must be bytes")

        if not isinstance(original_name, str) or not original_name.strip():
            raise ValidationError("original_name is required")

        if not isinstance(mime_type, str) or not mime_type.strip():
            raise ValidationError("mime_type is required")

        if isinstance(size_bytes, bool) or not isinstance(size_bytes, int) or size_bytes < 0:
            raise ValidationError("size_bytes must be a non-negative integer")

        if size_bytes != len(content):
            raise ValidationError(
                f"size_bytes ({size_bytes}) does not match content length ({len(content)})"
            )

        if not isinstance(expires_at, datetime):
            raise ValidationError("expires_at must be a datetime")

        expires_at = to_naive_utc(expires_at)
        if expires_at <= now:
            raise ValidationError("Expiry time must be in the future")

        if max_downloads is not None:
            if isinstance(max_downloads, bool) or not isinstance(max_downloads, int):
                raise ValidationError("max_downloads must be an integer")
            if max_downloads < 0:
                raise ValidationError("max_downloads cannot be negative")

        return expires_at

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_by_token(self, token: str) -> SharedFile:
        """
        Retrieve file by access token.

        Pure lookup: expiry and download limits are not enforced here.

        Raises:
            SharedFileNotFoundError: If no file has this token
        """
        file = self.file_repo.get_by_token(token) if token else None

        if file is None:
            raise SharedFileNotFoundError("File not found for token")

        return file

    def get_by_id(self, file_id: str, owner_id: Optional[str] = None) -> SharedFile:
        """
        Retrieve file by id, optionally scoped to an owner.

        A file that belongs to someone else is reported as missing so
        its existence does not leak.

        Raises:
            SharedFileNotFoundError: If the file doesn't exist or isn't the owner's
        """
        file = self.file_repo.get_by_id(file_id) if file_id else None

        if file is None or (owner_id is not None and not file.is_owned_by(owner_id)):
            raise SharedFileNotFoundError(f"File not found: {file_id}")

        return file

    def list_by_owner(self, owner_id: str) -> List[SharedFile]:
        """Files owned by an identity, most recently created first."""
        if not owner_id:
            return []
        return self.file_repo.list_by_owner(owner_id)

    # ------------------------------------------------------------------
    # Bounded access
    # ------------------------------------------------------------------

    def register_download(self, file: SharedFile) -> SharedFile:
        """
        Count one download against the file's budget.

        The increment and the bound check happen in a single conditional
        update, so concurrent callers near the limit cannot overshoot it.

        Returns:
            The updated SharedFile

        Raises:
            DownloadLimitExceededError: If the budget is already used up
            SharedFileNotFoundError: If the record no longer exists
        """
        updated = self.file_repo.increment_download_count(file.id, self.clock())

        if updated is None:
            if not self.file_repo.exists(file.id):
                raise SharedFileNotFoundError(f"File not found: {file.id}")
            raise DownloadLimitExceededError(f"Download limit reached for file {file.id}")

        return updated

    def open_content(self, file: SharedFile) -> BinaryIO:
        """
        Open the file's blob for streaming.

        Raises:
            SharedFileNotFoundError: If the blob is gone
            StorageError: If the blob store fails
        """
        try:
            stream = self.storage_repo.get(file.storage_key)
        except OSError as e:
            raise StorageError(f"Failed to read blob {file.storage_key}: {e}", e) from e

        if stream is None:
            raise SharedFileNotFoundError(f"Content missing for file {file.id}")

        return stream

    # ------------------------------------------------------------------
    # Destruction
    # ------------------------------------------------------------------

    def delete(self, file: SharedFile) -> None:
        """
        Delete a file's blob, then its metadata.

        Idempotent: an already-absent blob or record is not an error, so an
        owner delete racing the reclamation sweep converges quietly.

        Raises:
            StorageError: If either backend fails
        """
        try:
            self.storage_repo.delete(file.storage_key)
        except OSError as e:
            raise StorageError(f"Failed to delete blob {file.storage_key}: {e}", e) from e

        if self.file_repo.delete(file.id):
            logger.info(f"Deleted file {file.id}")
        else:
            logger.debug(f"File {file.id} was already deleted")

    def find_reclaimable(
        self, now: Optional[datetime] = None, limit: int = 200
    ) -> Tuple[List[SharedFile], List[SharedFile]]:
        """
        Candidates for reclamation.

        Returns:
            Tuple of (expired files, exhausted files), each at most ``limit`` long
        """
        now = now or self.clock()
        return self.file_repo.find_expired(now, limit), self.file_repo.find_exhausted(limit)
