"""
Logging Event Handler

Infrastructure event handler for logging domain events.
Domain layer remains unaware of logging infrastructure.
"""

import logging

from ...domain.events import (
    DomainEvent,
    FileAccessDeniedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileDownloadedEvent,
    ReclamationSweepCompletedEvent,
)


class LoggingEventHandler:
    """
    Infrastructure event handler for logging domain events.

    Subscribe ``handle`` to DomainEvent to log every event.
    """

    def __init__(self, logger: logging.Logger):
        """
        Initialize with logger instance.

        Args:
            logger: Python logging.Logger instance
        """
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event by logging it.

        Args:
            event: Domain event to log
        """
        try:
            if isinstance(event, FileCreatedEvent):
                self._handle_file_created(event)
            elif isinstance(event, FileDownloadedEvent):
                self._handle_file_downloaded(event)
            elif isinstance(event, FileAccessDeniedEvent):
                self._handle_access_denied(event)
            elif isinstance(event, FileDeletedEvent):
                self._handle_file_deleted(event)
            elif isinstance(event, ReclamationSweepCompletedEvent):
                self._handle_sweep_completed(event)
            else:
                self.logger.debug(
                    f"Unhandled event: {event.__class__.__name__} "
                    f"(aggregate_id={event.aggregate_id})"
                )
        except Exception as e:
            # Log handler errors but don't fail the operation
            self.logger.error(
                f"Error in logging event handler for {event.__class__.__name__}: {e}",
                exc_info=True,
            )

    def _handle_file_created(self, event: FileCreatedEvent) -> None:
        self.logger.info(
            f"File created: file_id={event.aggregate_id}, owner={event.owner_id or 'anonymous'}, "
            f"size={event.size_bytes} bytes, expires_at={event.expires_at.isoformat()}, "
            f"max_downloads={event.max_downloads}"
        )

    def _handle_file_downloaded(self, event: FileDownloadedEvent) -> None:
        remaining = "unlimited" if event.remaining_downloads is None else event.remaining_downloads
        self.logger.info(
            f"File downloaded: file_id={event.aggregate_id}, "
            f"count={event.download_count}, remaining={remaining}"
        )

    def _handle_access_denied(self, event: FileAccessDeniedEvent) -> None:
        self.logger.info(f"File access refused: file_id={event.aggregate_id}, reason={event.reason}")

    def _handle_file_deleted(self, event: FileDeletedEvent) -> None:
        self.logger.info(f"File deleted: file_id={event.aggregate_id}, reason={event.reason}")

    def _handle_sweep_completed(self, event: ReclamationSweepCompletedEvent) -> None:
        """Log sweep results; failures are warnings since they retry next tick."""
        log = self.logger.warning if event.failed else self.logger.info
        log(
            f"Reclamation sweep {event.aggregate_id}: expired={event.expired_found}, "
            f"exhausted={event.exhausted_found}, purged={event.purged}, failed={event.failed}"
        )
