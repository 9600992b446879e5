"""
File Storage Entities

Domain entity for a shared file with bounded access.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional
import uuid

from ..clock import utcnow
from .value_objects import DownloadToken, StorageKey


@dataclass
class SharedFile:
    """
    Entity representing an uploaded file reachable through a download token.

    Access is bounded by ``expires_at`` and, optionally, by ``max_downloads``.
    The only mutation after creation is the download counter, which the
    metadata repository advances atomically.
    """
    id: str
    original_name: str
    storage_key: str
    mime_type: str
    size_bytes: int
    expires_at: datetime
    download_token: str
    created_at: datetime
    updated_at: datetime
    owner_id: Optional[str] = None
    download_count: int = 0
    max_downloads: Optional[int] = None

    @classmethod
    def create(
        cls,
        original_name: str,
        mime_type: str,
        size_bytes: int,
        expires_at: datetime,
        owner_id: Optional[str] = None,
        max_downloads: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> 'SharedFile':
        """
        Factory method to create a new file record.

        Assigns a fresh id, an unguessable download token and the storage
        key derived from both.

        Args:
            original_name: Name supplied by the uploader
            mime_type: Content type of the upload
            size_bytes: Byte length of the content
            expires_at: Moment after which the file is no longer served
            owner_id: Identity of the uploader, None for anonymous uploads
            max_downloads: Download budget, None for unbounded
            now: Creation time (defaults to current UTC time)

        Returns:
            New SharedFile instance with download_count 0
        """
        now = now or utcnow()
        file_id = str(uuid.uuid4())

        return cls(
            id=file_id,
            owner_id=owner_id,
            original_name=original_name,
            storage_key=StorageKey.derive(file_id, original_name).value,
            mime_type=mime_type,
            size_bytes=size_bytes,
            expires_at=expires_at,
            download_token=DownloadToken.generate().value,
            download_count=0,
            max_downloads=max_downloads,
            created_at=now,
            updated_at=now,
        )

    def regenerate_identifiers(self) -> 'SharedFile':
        """Copy of this record with a new id, token and storage key."""
        file_id = str(uuid.uuid4())
        return replace(
            self,
            id=file_id,
            storage_key=StorageKey.derive(file_id, self.original_name).value,
            download_token=DownloadToken.generate().value,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """
        Check if file has expired.

        Returns:
            True if expired, False otherwise
        """
        return (now or utcnow()) >= self.expires_at

    def is_exhausted(self) -> bool:
        """True when a bounded file has used up its download budget."""
        return self.max_downloads is not None and self.download_count >= self.max_downloads

    def is_accessible(self, now: Optional[datetime] = None) -> bool:
        """True when content may still be served."""
        return not self.is_expired(now) and not self.is_exhausted()

    def is_owned_by(self, owner_id: Optional[str]) -> bool:
        """True when the file belongs to the given identity."""
        return self.owner_id is not None and self.owner_id == owner_id

    def remaining_downloads(self) -> Optional[int]:
        """
        Downloads left before the budget is exhausted.

        Returns:
            Remaining count (never negative), or None when unbounded
        """
        if self.max_downloads is None:
            return None
        return max(0, self.max_downloads - self.download_count)

    def get_remaining_seconds(self, now: Optional[datetime] = None) -> int:
        """
        Get remaining seconds until expiration.

        Returns:
            Seconds remaining (0 if expired)
        """
        remaining = self.expires_at - (now or utcnow())
        return max(0, int(remaining.total_seconds()))

    def generate_download_url(self, base_url: str = "", api_prefix: str = "/api/v1/files") -> str:
        """
        Generate download URL with token.

        Args:
            base_url: Public base URL of the service
            api_prefix: Path of the files namespace

        Returns:
            Full download URL
        """
        return f"{self.generate_view_url(base_url, api_prefix)}/download"

    def generate_view_url(self, base_url: str = "", api_prefix: str = "/api/v1/files") -> str:
        """Generate metadata URL with token."""
        return f"{base_url.rstrip('/')}{api_prefix}/{self.download_token}"

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "original_name": self.original_name,
            "storage_key": self.storage_key,
            "mime_type": self.mime_type,
            "size_bytes": self.size_bytes,
            "expires_at": self.expires_at.isoformat(),
            "download_token": self.download_token,
            "download_count": self.download_count,
            "max_downloads": self.max_downloads,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SharedFile':
        """Create SharedFile from dictionary."""
        max_downloads = data.get("max_downloads")
        return cls(
            id=data["id"],
            owner_id=data.get("owner_id"),
            original_name=data["original_name"],
            storage_key=data["storage_key"],
            mime_type=data["mime_type"],
            size_bytes=int(data["size_bytes"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
            download_token=data["download_token"],
            download_count=int(data.get("download_count", 0)),
            max_downloads=int(max_downloads) if max_downloads is not None else None,
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )
