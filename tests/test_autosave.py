"""
Tests for the debounced autosave coordinator.
"""

import json
import threading
import time
import unittest

from tilegarden.autosave import AutosaveCoordinator, RecordWriter, StoreRecordWriter
from tilegarden.models import GardenRecord
from tilegarden.persistence import PersistenceStore
from tilegarden.scheduling import ManualScheduler, ThreadingScheduler
from tilegarden.storage import InMemoryStorage

from factories import FixedClock, make_block

SNAPSHOT_KEY = "garden-snapshot:g1"


class RecordingWriter(RecordWriter):
    """Writer that records every call and can be told to fail."""

    def __init__(self):
        self.writes = []
        self.failures = 0
        self.during_write = None

    def write(self, record_id, changes):
        if self.during_write is not None:
            self.during_write()
        if self.failures:
            self.failures -= 1
            raise ConnectionError("record service unavailable")
        self.writes.append((record_id, changes))


class BlockingWriter(RecordWriter):
    """Writer that holds its first write until released."""

    def __init__(self):
        self.titles = []
        self.started = threading.Event()
        self.release = threading.Event()

    def write(self, record_id, changes):
        self.started.set()
        self.release.wait(5)
        self.titles.append(changes["title"])


class AutosaveTestCase(unittest.TestCase):

    def setUp(self):
        self.scheduler = ManualScheduler()
        self.writer = RecordingWriter()
        self.snapshots = InMemoryStorage()
        self.clock = FixedClock()
        self.record = GardenRecord(id="g1", title="My Garden", tiles=[], layout={"cols": 12})
        self.coordinator = self.make_coordinator()

    def make_coordinator(self, **overrides):
        options = dict(
            snapshot_storage=self.snapshots,
            autosave_delay=2.0,
            snapshot_interval=120.0,
            snapshot_key_prefix="garden-snapshot",
            clock=self.clock
        )
        options.update(overrides)
        return AutosaveCoordinator(self.record, self.writer, self.scheduler, **options)


class TestDebouncedSave(AutosaveTestCase):
    """Test debouncing and the pending-changes buffer."""

    def test_edits_within_delay_produce_one_write(self):
        self.coordinator.notify_change(tiles=["t1"])
        self.scheduler.advance(1)
        self.coordinator.notify_change(title="Renamed")
        self.scheduler.advance(1)
        self.coordinator.notify_change(layout={"cols": 6})
        self.scheduler.advance(1.9)

        self.assertEqual(self.writer.writes, [])
        self.assertTrue(self.coordinator.has_unsaved_changes)

        self.scheduler.advance(0.2)

        self.assertEqual(self.writer.writes, [
            ("g1", {"tiles": ["t1"], "layout": {"cols": 6}, "title": "Renamed"})
        ])
        self.assertEqual(self.coordinator.status.status, "saved")
        self.assertFalse(self.coordinator.has_unsaved_changes)
        self.assertTrue(self.coordinator.pending.is_empty())

    def test_newer_edit_replaces_older_value(self):
        self.coordinator.notify_change(title="First")
        self.coordinator.notify_change(title="Second")
        self.scheduler.advance(2)

        self.assertEqual(self.writer.writes[0][1]["title"], "Second")

    def test_untouched_fields_use_committed_values(self):
        self.coordinator.notify_change(title="Renamed")
        self.scheduler.advance(2)

        changes = self.writer.writes[0][1]
        self.assertEqual(changes["tiles"], [])
        self.assertEqual(changes["layout"], {"cols": 12})

    def test_successful_save_updates_record(self):
        self.clock.tick(30)
        self.coordinator.notify_change(tiles=["t1"])
        self.scheduler.advance(2)

        self.assertEqual(self.coordinator.record.tiles, ["t1"])
        self.assertEqual(self.coordinator.record.updated_at, self.clock.now)
        self.assertEqual(self.coordinator.status.last_saved, self.clock.now)
        self.assertIsNone(self.coordinator.status.error)

    def test_failure_keeps_buffer_and_retries_on_next_edit(self):
        self.writer.failures = 1
        self.coordinator.notify_change(tiles=["t1"])
        self.scheduler.advance(2)

        self.assertEqual(self.coordinator.status.status, "error")
        self.assertEqual(self.coordinator.status.error, "record service unavailable")
        self.assertTrue(self.coordinator.has_unsaved_changes)
        self.assertEqual(self.coordinator.pending.tiles, ["t1"])

        self.coordinator.notify_change(title="Renamed")
        self.scheduler.advance(2)

        self.assertEqual(self.writer.writes, [
            ("g1", {"tiles": ["t1"], "layout": {"cols": 12}, "title": "Renamed"})
        ])
        self.assertEqual(self.coordinator.status.status, "saved")

    def test_edit_during_write_stays_pending(self):
        self.coordinator.notify_change(title="First")
        self.writer.during_write = lambda: self.coordinator.notify_change(title="Second")
        self.scheduler.advance(2)

        self.assertEqual(self.writer.writes[0][1]["title"], "First")
        self.assertEqual(self.coordinator.pending.title, "Second")
        self.assertTrue(self.coordinator.has_unsaved_changes)

        self.writer.during_write = None
        self.scheduler.advance(2)
        self.assertEqual(self.writer.writes[1][1]["title"], "Second")
        self.assertFalse(self.coordinator.has_unsaved_changes)


class TestManualSave(AutosaveTestCase):
    """Test saving on demand."""

    def test_save_now_bypasses_debounce(self):
        self.coordinator.notify_change(tiles=["t1"])

        self.assertTrue(self.coordinator.save_now())
        self.assertEqual(len(self.writer.writes), 1)

        self.scheduler.advance(10)
        self.assertEqual(len(self.writer.writes), 1)

    def test_save_now_with_nothing_pending(self):
        self.assertTrue(self.coordinator.save_now())

        self.assertEqual(self.writer.writes, [])
        self.assertEqual(self.coordinator.status.status, "saved")

    def test_save_now_failure(self):
        self.writer.failures = 1
        self.coordinator.notify_change(tiles=["t1"])

        self.assertFalse(self.coordinator.save_now())
        self.assertEqual(self.coordinator.status.status, "error")


class TestSnapshots(AutosaveTestCase):
    """Test local safety snapshots."""

    def test_snapshot_taken_on_interval(self):
        self.writer.failures = 10
        self.coordinator.notify_change(tiles=["unsaved"])
        self.scheduler.advance(120)

        document = json.loads(self.snapshots.read(SNAPSHOT_KEY))
        self.assertEqual(document["gardenId"], "g1")
        self.assertEqual(document["tiles"], ["unsaved"])
        self.assertEqual(document["title"], "My Garden")

    def test_successful_save_clears_snapshot(self):
        self.coordinator.notify_change(tiles=["t1"])
        self.coordinator.take_snapshot()
        self.assertIsNotNone(self.snapshots.read(SNAPSHOT_KEY))

        self.scheduler.advance(2)
        self.assertIsNone(self.snapshots.read(SNAPSHOT_KEY))

    def test_restore_from_snapshot(self):
        self.writer.failures = 10
        self.coordinator.notify_change(tiles=["lost"], title="Draft")
        self.coordinator.take_snapshot()
        self.coordinator.dispose()

        fresh = self.make_coordinator()
        self.assertIsNotNone(fresh.check_for_snapshot())
        self.assertTrue(fresh.restore_from_snapshot())
        self.assertEqual(fresh.pending.tiles, ["lost"])
        self.assertEqual(fresh.pending.title, "Draft")
        self.assertTrue(fresh.has_unsaved_changes)

    def test_unreadable_snapshot_is_ignored(self):
        self.snapshots.write(SNAPSHOT_KEY, b"not json")

        self.assertIsNone(self.coordinator.check_for_snapshot())
        self.assertFalse(self.coordinator.restore_from_snapshot())

    def test_snapshots_disabled_without_storage(self):
        coordinator = self.make_coordinator(snapshot_storage=None)

        self.assertIsNone(coordinator.take_snapshot())
        self.assertIsNone(coordinator.check_for_snapshot())


class TestDispose(AutosaveTestCase):
    """Test teardown."""

    def test_dispose_stops_timers(self):
        self.coordinator.notify_change(tiles=["t1"])
        self.coordinator.dispose()
        self.scheduler.advance(500)

        self.assertEqual(self.writer.writes, [])
        self.assertEqual(self.snapshots.keys(), [])
        self.assertEqual(self.scheduler.pending_count, 0)
        self.assertTrue(self.coordinator.disposed)

    def test_write_finishing_after_dispose_is_ignored(self):
        self.coordinator.notify_change(tiles=["t1"])
        self.writer.during_write = self.coordinator.dispose
        self.scheduler.advance(2)

        self.assertEqual(len(self.writer.writes), 1)
        self.assertEqual(self.coordinator.status.status, "saving")
        self.assertEqual(self.coordinator.record.tiles, [])

    def test_edits_after_dispose_are_ignored(self):
        self.coordinator.dispose()
        self.coordinator.notify_change(tiles=["t1"])

        self.assertTrue(self.coordinator.pending.is_empty())
        self.assertFalse(self.coordinator.save_now())


class TestThreadedAutosave(unittest.TestCase):
    """Test the coordinator driven by real timer threads."""

    def test_edit_during_threaded_write_is_saved_next(self):
        writer = BlockingWriter()
        coordinator = AutosaveCoordinator(
            GardenRecord(id="g1", title="My Garden"),
            writer,
            ThreadingScheduler(),
            autosave_delay=0.01
        )
        self.addCleanup(coordinator.dispose)

        coordinator.notify_change(title="First")
        self.assertTrue(writer.started.wait(5))

        coordinator.notify_change(title="Second")
        time.sleep(0.05)
        writer.release.set()

        deadline = time.monotonic() + 5
        while (len(writer.titles) < 2 or coordinator.has_unsaved_changes) and time.monotonic() < deadline:
            time.sleep(0.01)

        self.assertEqual(writer.titles, ["First", "Second"])
        self.assertEqual(coordinator.record.title, "Second")
        self.assertTrue(coordinator.pending.is_empty())


class TestStoreRecordWriter(unittest.TestCase):
    """Test autosave into the persistence store."""

    def test_tiles_saved_through_store(self):
        scheduler = ManualScheduler()
        storage = InMemoryStorage()
        store = PersistenceStore(storage, scheduler=scheduler, live_key="live", backup_key="backup")
        coordinator = AutosaveCoordinator(
            GardenRecord(id="g1"),
            StoreRecordWriter(store),
            scheduler,
            autosave_delay=2.0
        )

        coordinator.notify_change(tiles=[make_block("a"), make_block("b")])
        scheduler.advance(2)

        self.assertEqual(coordinator.status.status, "saved")
        self.assertEqual([b.id for b in store.load().blocks], ["a", "b"])


if __name__ == '__main__':
    unittest.main()
