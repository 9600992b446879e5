"""
Unit tests for ReclamationScheduler.

The scheduler runs over in-memory repositories and a fake clock; the
background thread is only exercised with short intervals.
"""

import threading
import time
from datetime import timedelta

import pytest

from ephemera.application.reclamation_scheduler import (
    ReclamationScheduler,
    SweepReport,
    SweepState,
)
from ephemera.domain.errors import StorageError
from ephemera.domain.events import FileDeletedEvent, ReclamationSweepCompletedEvent

from tests.fixtures import BASE_TIME


def _create(manager, expires_in=timedelta(hours=1), max_downloads=None, owner_id=None):
    return manager.create(
        content=b"data",
        original_name="data.bin",
        mime_type="application/octet-stream",
        size_bytes=4,
        expires_at=manager.clock() + expires_in,
        owner_id=owner_id,
        max_downloads=max_downloads,
    )


class TestConstruction:
    """Test argument validation."""

    @pytest.mark.parametrize("kwargs", [{"interval_seconds": 0}, {"batch_size": 0}, {"interval_seconds": -1}])
    def test_rejects_non_positive(self, lifecycle_manager, kwargs):
        with pytest.raises(ValueError):
            ReclamationScheduler(lifecycle_manager, **kwargs)

    def test_starts_idle(self, scheduler):
        assert scheduler.state == SweepState.IDLE
        assert scheduler.last_report is None
        assert not scheduler.is_running


class TestRunSweep:
    """Test a single sweep."""

    def test_purges_expired_and_exhausted(
        self, scheduler, lifecycle_manager, storage_repository, clock
    ):
        expired = _create(lifecycle_manager, expires_in=timedelta(seconds=30))
        exhausted = _create(lifecycle_manager, max_downloads=1)
        alive = _create(lifecycle_manager, max_downloads=3)
        lifecycle_manager.register_download(exhausted)
        lifecycle_manager.register_download(alive)
        clock.advance(seconds=30)

        report = scheduler.run_sweep()

        assert report.expired_found == 1
        assert report.exhausted_found == 1
        assert report.purged == 2
        assert report.failed == 0
        assert not report.skipped
        assert storage_repository.keys() == [alive.storage_key]
        assert lifecycle_manager.get_by_id(alive.id).download_count == 1
        assert not lifecycle_manager.file_repo.exists(expired.id)
        assert not lifecycle_manager.file_repo.exists(exhausted.id)

    def test_zero_budget_file_is_reclaimed(self, scheduler, lifecycle_manager):
        file = _create(lifecycle_manager, max_downloads=0)

        assert scheduler.run_sweep().purged == 1
        assert not lifecycle_manager.file_repo.exists(file.id)

    def test_file_both_expired_and_exhausted_purged_once(
        self, scheduler, lifecycle_manager, file_repository, clock, published_events
    ):
        file = _create(lifecycle_manager, expires_in=timedelta(seconds=10), max_downloads=1)
        lifecycle_manager.register_download(file)
        clock.advance(minutes=1)

        report = scheduler.run_sweep()

        assert report.expired_found == 1
        assert report.exhausted_found == 1
        assert report.purged == 1
        assert len(file_repository.calls_to("delete")) == 1
        deleted = [e for e in published_events if isinstance(e, FileDeletedEvent)]
        assert [e.reason for e in deleted] == ["expired"]

    def test_nothing_to_do(self, scheduler, lifecycle_manager):
        _create(lifecycle_manager)

        report = scheduler.run_sweep()

        assert (report.purged, report.failed) == (0, 0)
        assert scheduler.state == SweepState.IDLE
        assert scheduler.last_report is report

    def test_partial_failure_continues(
        self, scheduler, lifecycle_manager, file_repository, clock
    ):
        broken = _create(lifecycle_manager, expires_in=timedelta(seconds=1))
        fine = _create(lifecycle_manager, expires_in=timedelta(seconds=2))
        file_repository.fail_delete_for[broken.id] = StorageError("redis down")
        clock.advance(seconds=5)

        report = scheduler.run_sweep()

        assert report.purged == 1
        assert report.failed == 1
        assert broken.id in report.errors[0]
        assert not file_repository.exists(fine.id)
        assert file_repository.exists(broken.id)

    def test_failed_file_retried_next_sweep(
        self, scheduler, lifecycle_manager, file_repository, clock
    ):
        file = _create(lifecycle_manager, expires_in=timedelta(seconds=1))
        file_repository.fail_delete_for[file.id] = StorageError("redis down")
        clock.advance(seconds=5)
        assert scheduler.run_sweep().failed == 1

        del file_repository.fail_delete_for[file.id]
        clock.advance(seconds=60)

        assert scheduler.run_sweep().purged == 1
        assert not file_repository.exists(file.id)

    def test_scan_failure_is_reported(self, scheduler, file_repository, monkeypatch):
        def broken_scan(now, limit):
            raise StorageError("scan failed")

        monkeypatch.setattr(file_repository, "find_expired", broken_scan)

        report = scheduler.run_sweep()

        assert report.purged == 0
        assert report.errors == ["scan: scan failed"]
        assert scheduler.state == SweepState.IDLE

    def test_batch_size_bounds_work(self, lifecycle_manager, clock):
        for _ in range(5):
            _create(lifecycle_manager, expires_in=timedelta(seconds=1))
        clock.advance(seconds=2)
        scheduler = ReclamationScheduler(lifecycle_manager, clock=clock, batch_size=2)

        assert scheduler.run_sweep().purged == 2
        assert scheduler.run_sweep().purged == 2
        assert scheduler.run_sweep().purged == 1

    def test_publishes_completion_event(self, scheduler, lifecycle_manager, clock, published_events):
        _create(lifecycle_manager, expires_in=timedelta(seconds=1))
        clock.advance(seconds=2)

        report = scheduler.run_sweep()

        event = published_events[-1]
        assert isinstance(event, ReclamationSweepCompletedEvent)
        assert event.aggregate_id == report.sweep_id
        assert event.purged == 1

    def test_report_to_dict(self, scheduler):
        data = scheduler.run_sweep().to_dict()

        assert data["started_at"] == BASE_TIME.isoformat()
        assert data["skipped"] is False
        assert data["errors"] == []


class TestOverlap:
    """Test that at most one sweep runs at a time."""

    def test_overlapping_sweep_is_skipped(self, scheduler, lifecycle_manager, monkeypatch):
        entered = threading.Event()
        release = threading.Event()
        original = lifecycle_manager.find_reclaimable

        def slow_scan(now=None, limit=200):
            entered.set()
            release.wait(5)
            return original(now, limit)

        monkeypatch.setattr(lifecycle_manager, "find_reclaimable", slow_scan)

        results = []
        worker = threading.Thread(target=lambda: results.append(scheduler.run_sweep()))
        worker.start()
        assert entered.wait(5)
        assert scheduler.state == SweepState.SCANNING

        overlapping = scheduler.run_sweep()

        release.set()
        worker.join(5)
        assert overlapping.skipped
        assert not results[0].skipped
        assert scheduler.last_report is results[0]

    def test_tick_swallows_unexpected_errors(self, scheduler, monkeypatch):
        def boom():
            raise RuntimeError("unexpected")

        monkeypatch.setattr(scheduler, "run_sweep", boom)

        assert scheduler.tick() is None


class TestBackgroundLoop:
    """Test start and stop of the daemon thread."""

    def test_ticks_until_stopped(self, lifecycle_manager, clock):
        scheduler = ReclamationScheduler(lifecycle_manager, clock=clock, interval_seconds=0.01)

        scheduler.start()
        deadline = time.monotonic() + 5
        while scheduler.last_report is None and time.monotonic() < deadline:
            time.sleep(0.01)
        scheduler.stop()

        assert isinstance(scheduler.last_report, SweepReport)
        assert not scheduler.is_running

    def test_start_is_idempotent(self, lifecycle_manager):
        scheduler = ReclamationScheduler(lifecycle_manager, interval_seconds=60)

        scheduler.start()
        thread = scheduler._thread
        scheduler.start()

        assert scheduler._thread is thread
        scheduler.stop()

    def test_first_tick_waits_for_interval(self, lifecycle_manager):
        scheduler = ReclamationScheduler(lifecycle_manager, interval_seconds=60)

        scheduler.start()
        scheduler.stop()

        assert scheduler.last_report is None
