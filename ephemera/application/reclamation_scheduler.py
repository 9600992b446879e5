"""
Reclamation Scheduler

Periodically removes files that have expired or used up their download
budget, together with their blobs.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..domain.clock import Clock, utcnow
from ..domain.events import FileDeletedEvent, ReclamationSweepCompletedEvent
from ..domain.file_storage import FileLifecycleManager, SharedFile
from .event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class SweepState(Enum):
    """Scheduler state: IDLE -> SCANNING -> PURGING -> IDLE."""

    IDLE = "idle"
    SCANNING = "scanning"
    PURGING = "purging"


@dataclass
class SweepReport:
    """Outcome of one sweep."""

    sweep_id: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    expired_found: int = 0
    exhausted_found: int = 0
    purged: int = 0
    failed: int = 0
    skipped: bool = False
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sweep_id": self.sweep_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "expired_found": self.expired_found,
            "exhausted_found": self.exhausted_found,
            "purged": self.purged,
            "failed": self.failed,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }


class ReclamationScheduler:
    """
    Sweeps expired and exhausted files on a fixed interval.

    At most one sweep runs at a time per scheduler: a tick that arrives
    while a sweep is in flight is skipped, not queued. Failures on a
    single file are logged and left for the next tick; eligibility never
    reverts, so the file is found again.
    """

    def __init__(
        self,
        lifecycle_manager: FileLifecycleManager,
        clock: Clock = utcnow,
        interval_seconds: float = 60.0,
        batch_size: int = 200,
        event_publisher: Optional[EventPublisher] = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")

        self.lifecycle = lifecycle_manager
        self.clock = clock
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size
        self.event_publisher = event_publisher

        self._state = SweepState.IDLE
        self._sweep_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_report: Optional[SweepReport] = None

    @property
    def state(self) -> SweepState:
        return self._state

    @property
    def last_report(self) -> Optional[SweepReport]:
        return self._last_report

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # Sweeping
    # ------------------------------------------------------------------

    def run_sweep(self) -> SweepReport:
        """
        Run one sweep now unless another is in flight.

        Returns:
            SweepReport; ``skipped`` is set when a sweep was already running
        """
        now = self.clock()
        report = SweepReport(sweep_id=uuid.uuid4().hex, started_at=now)

        if not self._sweep_lock.acquire(blocking=False):
            logger.info("Reclamation sweep already in progress, skipping tick")
            report.skipped = True
            report.finished_at = now
            return report

        try:
            self._sweep(report, now)
        finally:
            self._state = SweepState.IDLE
            report.finished_at = self.clock()
            self._last_report = report
            self._sweep_lock.release()

        if self.event_publisher is not None:
            self.event_publisher.publish(ReclamationSweepCompletedEvent(
                aggregate_id=report.sweep_id,
                occurred_at=report.finished_at,
                expired_found=report.expired_found,
                exhausted_found=report.exhausted_found,
                purged=report.purged,
                failed=report.failed,
            ))
        return report

    def _sweep(self, report: SweepReport, now: datetime) -> None:
        self._state = SweepState.SCANNING
        try:
            expired, exhausted = self.lifecycle.find_reclaimable(now, self.batch_size)
        except Exception as e:
            logger.exception(f"Reclamation scan failed: {e}")
            report.errors.append(f"scan: {e}")
            return

        report.expired_found = len(expired)
        report.exhausted_found = len(exhausted)

        candidates: Dict[str, tuple] = {}
        for file in expired:
            candidates.setdefault(file.id, (file, "expired"))
        for file in exhausted:
            candidates.setdefault(file.id, (file, "exhausted"))

        if not candidates:
            logger.debug("Reclamation sweep found nothing to purge")
            return

        self._state = SweepState.PURGING
        for file, reason in candidates.values():
            if self._purge(file, reason, report):
                report.purged += 1
            else:
                report.failed += 1

    def _purge(self, file: SharedFile, reason: str, report: SweepReport) -> bool:
        try:
            self.lifecycle.delete(file)
        except Exception as e:
            logger.error(f"Failed to reclaim file {file.id} ({reason}): {e}", exc_info=True)
            report.errors.append(f"{file.id}: {e}")
            return False

        if self.event_publisher is not None:
            self.event_publisher.publish(
                FileDeletedEvent(aggregate_id=file.id, occurred_at=self.clock(), reason=reason)
            )
        return True

    def tick(self) -> Optional[SweepReport]:
        """One guarded sweep that never raises, for use by timers."""
        try:
            return self.run_sweep()
        except Exception as e:
            logger.exception(f"Unexpected error during reclamation tick: {e}")
            return None

    # ------------------------------------------------------------------
    # Background loop
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start ticking on a daemon thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop, name="reclamation-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(f"Reclamation scheduler started (every {self.interval_seconds}s)")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Signal the loop to stop and wait for the current sweep to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.info("Reclamation scheduler stopped")

    def _run_loop(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            self.tick()
