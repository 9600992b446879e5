"""
Domain Events

Immutable records of significant state changes in the domain.
Events decouple side effects (logging, notifications) from core business logic.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: ID of the aggregate that generated the event (e.g., file id)
        occurred_at: Timestamp when the event occurred
    """
    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for serialization.

        Returns:
            Dictionary representation of the event
        """
        return {
            "event_type": self.__class__.__name__,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class FileCreatedEvent(DomainEvent):
    """
    Event emitted when a file has been stored.

    Attributes:
        aggregate_id: File ID
        occurred_at: When the file was stored
        owner_id: Uploader identity, None for anonymous uploads
        size_bytes: Content length
        expires_at: Expiry moment
        max_downloads: Download budget, None for unbounded
    """
    owner_id: Optional[str]
    size_bytes: int
    expires_at: datetime
    max_downloads: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "owner_id": self.owner_id,
            "size_bytes": self.size_bytes,
            "expires_at": self.expires_at.isoformat(),
            "max_downloads": self.max_downloads,
        })
        return base_dict


@dataclass(frozen=True)
class FileDownloadedEvent(DomainEvent):
    """
    Event emitted when a download has been counted and content is being served.

    Attributes:
        aggregate_id: File ID
        occurred_at: When the download was counted
        download_count: Counter value after the increment
        remaining_downloads: Budget left, None for unbounded
    """
    download_count: int
    remaining_downloads: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "download_count": self.download_count,
            "remaining_downloads": self.remaining_downloads,
        })
        return base_dict


@dataclass(frozen=True)
class FileAccessDeniedEvent(DomainEvent):
    """
    Event emitted when a content or metadata request hits an expired or exhausted file.

    Attributes:
        aggregate_id: File ID
        occurred_at: When access was refused
        reason: Error category value (file_expired, download_limit_reached)
    """
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict["reason"] = self.reason
        return base_dict


@dataclass(frozen=True)
class FileDeletedEvent(DomainEvent):
    """
    Event emitted when a file's blob and metadata have been removed.

    Attributes:
        aggregate_id: File ID
        occurred_at: When the file was deleted
        reason: "owner" for explicit deletion, "expired" or "exhausted" for reclamation
    """
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict["reason"] = self.reason
        return base_dict


@dataclass(frozen=True)
class ReclamationSweepCompletedEvent(DomainEvent):
    """
    Event emitted at the end of a reclamation sweep.

    Attributes:
        aggregate_id: Sweep identifier
        occurred_at: When the sweep finished
        expired_found: Expired candidates found
        exhausted_found: Exhausted candidates found
        purged: Files deleted
        failed: Deletions that failed and will be retried
    """
    expired_found: int
    exhausted_found: int
    purged: int
    failed: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "expired_found": self.expired_found,
            "exhausted_found": self.exhausted_found,
            "purged": self.purged,
            "failed": self.failed,
        })
        return base_dict
