"""
File Share Application Service

Coordinates the sharing use cases exposed by the HTTP gateway: upload,
metadata lookup, download, owner deletion and listing.
"""

import logging
from datetime import datetime, timedelta
from typing import BinaryIO, List, Optional, Tuple

from ..domain.clock import Clock, to_naive_utc, utcnow
from ..domain.errors import (
    AccessDeniedError,
    AuthenticationRequiredError,
    DownloadLimitExceededError,
    ErrorCategory,
    FileGoneError,
    ValidationError,
)
from ..domain.events import (
    FileAccessDeniedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileDownloadedEvent,
)
from ..domain.file_storage import FileLifecycleManager, SharedFile
from .event_publisher import EventPublisher

logger = logging.getLogger(__name__)


def parse_expiry(
    expires_at: Optional[str],
    expires_in: Optional[str],
    now: datetime,
) -> datetime:
    """
    Resolve the expiry moment from either an ISO-8601 timestamp or a
    relative number of seconds. ``expires_at`` wins when both are given.

    Raises:
        ValidationError: If neither is given or the value is malformed
    """
    if expires_at not in (None, ""):
        value = str(expires_at).strip()
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        try:
            return to_naive_utc(datetime.fromisoformat(value))
        except (ValueError, OverflowError) as e:
            raise ValidationError(f"Invalid expiresAt value: {expires_at}", original_error=e) from e

    if expires_in not in (None, ""):
        try:
            seconds = int(str(expires_in).strip())
        except ValueError as e:
            raise ValidationError("Invalid expiresIn value", original_error=e) from e
        if seconds <= 0:
            raise ValidationError("Invalid expiresIn value")
        try:
            return now + timedelta(seconds=seconds)
        except OverflowError as e:
            raise ValidationError("Invalid expiresIn value", original_error=e) from e

    raise ValidationError("expiresAt or expiresIn is required")


def parse_max_downloads(raw: Optional[str]) -> Optional[int]:
    """Parse the optional download budget; blank means unbounded."""
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = int(str(raw).strip())
    except ValueError as e:
        raise ValidationError("maxDownloads must be an integer", original_error=e) from e
    if value < 0:
        raise ValidationError("maxDownloads cannot be negative")
    return value


class FileShareService:
    """
    Application service for sharing operations.

    Enforces gateway policy (upload size, authentication, expiry and
    budget checks, ownership) on top of the FileLifecycleManager and
    publishes domain events for every state change.
    """

    def __init__(
        self,
        lifecycle_manager: FileLifecycleManager,
        event_publisher: Optional[EventPublisher] = None,
        max_upload_bytes: int = 50 * 1024 * 1024,
        require_auth_for_upload: bool = False,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize FileShareService.

        Args:
            lifecycle_manager: Domain service owning file records and blobs
            event_publisher: Publisher for domain events (optional)
            max_upload_bytes: Largest accepted upload
            require_auth_for_upload: Reject anonymous uploads when True
            clock: Time source, defaults to the lifecycle manager's
        """
        self.lifecycle = lifecycle_manager
        self.event_publisher = event_publisher
        self.max_upload_bytes = max_upload_bytes
        self.require_auth_for_upload = require_auth_for_upload
        self.clock = clock or getattr(lifecycle_manager, "clock", utcnow)

    def _publish(self, event) -> None:
        if self.event_publisher is not None:
            self.event_publisher.publish(event)

    def upload(
        self,
        content: bytes,
        original_name: str,
        mime_type: Optional[str],
        owner_id: Optional[str] = None,
        expires_at: Optional[str] = None,
        expires_in: Optional[str] = None,
        max_downloads: Optional[str] = None,
    ) -> SharedFile:
        """
        Store an uploaded file.

        Raises:
            AuthenticationRequiredError: If uploads require an identity and none was given
            ValidationError: If the input is invalid or too large
            StorageError: If persistence fails
        """
        if self.require_auth_for_upload and not owner_id:
            raise AuthenticationRequiredError("Authentication required to upload files")

        if content is None or not original_name:
            raise ValidationError("File is required")

        if len(content) > self.max_upload_bytes:
            raise ValidationError(
                f"Upload of {len(content)} bytes exceeds limit of {self.max_upload_bytes} bytes",
                category=ErrorCategory.FILE_TOO_LARGE,
            )

        now = self.clock()
        expiry = parse_expiry(expires_at, expires_in, now)
        budget = parse_max_downloads(max_downloads)

        file = self.lifecycle.create(
            content=content,
            original_name=original_name,
            mime_type=mime_type or "application/octet-stream",
            size_bytes=len(content),
            expires_at=expiry,
            owner_id=owner_id or None,
            max_downloads=budget,
        )

        self._publish(FileCreatedEvent(
            aggregate_id=file.id,
            occurred_at=file.created_at,
            owner_id=file.owner_id,
            size_bytes=file.size_bytes,
            expires_at=file.expires_at,
            max_downloads=file.max_downloads,
        ))
        return file

    def _ensure_accessible(self, file: SharedFile) -> None:
        now = self.clock()
        if file.is_expired(now):
            self._publish(FileAccessDeniedEvent(
                aggregate_id=file.id, occurred_at=now, reason=ErrorCategory.FILE_EXPIRED.value
            ))
            raise FileGoneError(f"File {file.id} has expired")

        if file.is_exhausted():
            self._publish(FileAccessDeniedEvent(
                aggregate_id=file.id, occurred_at=now,
                reason=ErrorCategory.DOWNLOAD_LIMIT_REACHED.value,
            ))
            raise DownloadLimitExceededError(f"Download limit reached for file {file.id}")

    def get_metadata(self, token: str) -> SharedFile:
        """
        Look up a file for its public metadata view.

        Raises:
            SharedFileNotFoundError: If the token is unknown
            FileGoneError: If the file is expired or its budget is used up
        """
        file = self.lifecycle.get_by_token(token)
        self._ensure_accessible(file)
        return file

    def begin_download(self, token: str) -> Tuple[SharedFile, BinaryIO]:
        """
        Validate, open and count one download.

        The blob is opened before the counter moves, so a missing blob
        costs nothing. Once counted, the download is consumed even if the
        client disconnects mid-stream.

        Returns:
            Tuple of (updated file, open content stream); the caller closes the stream

        Raises:
            SharedFileNotFoundError: If the token, record or blob is missing
            FileGoneError: If expired or the budget is used up
        """
        file = self.lifecycle.get_by_token(token)
        self._ensure_accessible(file)

        stream = self.lifecycle.open_content(file)
        try:
            updated = self.lifecycle.register_download(file)
        except DownloadLimitExceededError:
            stream.close()
            self._publish(FileAccessDeniedEvent(
                aggregate_id=file.id, occurred_at=self.clock(),
                reason=ErrorCategory.DOWNLOAD_LIMIT_REACHED.value,
            ))
            raise
        except Exception:
            stream.close()
            raise

        self._publish(FileDownloadedEvent(
            aggregate_id=updated.id,
            occurred_at=updated.updated_at,
            download_count=updated.download_count,
            remaining_downloads=updated.remaining_downloads(),
        ))
        return updated, stream

    def delete(self, file_id: str, caller_id: Optional[str]) -> None:
        """
        Delete a file on behalf of a caller.

        Anonymous files may be deleted by anyone holding the id; owned
        files only by their owner.

        Raises:
            SharedFileNotFoundError: If the file doesn't exist
            AccessDeniedError: If the caller is not the owner
        """
        file = self.lifecycle.get_by_id(file_id)

        if file.owner_id is not None and file.owner_id != caller_id:
            logger.warning(f"Delete of file {file_id} refused for caller {caller_id or 'anonymous'}")
            raise AccessDeniedError(f"Caller is not the owner of file {file_id}")

        self.lifecycle.delete(file)
        self._publish(FileDeletedEvent(aggregate_id=file.id, occurred_at=self.clock(), reason="owner"))

    def list_files(self, owner_id: Optional[str]) -> List[SharedFile]:
        """
        Files owned by the caller, newest first.

        Raises:
            AuthenticationRequiredError: If no identity was supplied
        """
        if not owner_id:
            raise AuthenticationRequiredError("Authentication required to list files")
        return self.lifecycle.list_by_owner(owner_id)
