"""
Debounced autosave for a garden record.

Edits accumulate in a pending-changes buffer. A write is issued once edits go
quiet for the autosave delay; separately, a periodic local snapshot protects
unsaved work if that write never happens.
"""

import json
import logging
import threading
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..clock import Clock, utc_now
from ..config import config
from ..errors import StorageError
from ..models import GardenRecord, LocalSnapshot, PendingChanges, SaveStatus
from ..scheduling import Cancellable, Scheduler
from ..storage import StoragePort
from .writers import RecordWriter

FIELDS = ("tiles", "layout", "title")


class AutosaveCoordinator:
    """
    Tracks unsaved edits to one record and saves them.

    Writes are not pipelined: every edit resets the debounce timer, and the
    buffer rather than any in-flight write decides what gets saved next.

    Timer callbacks may run on other threads (see ThreadingScheduler), so the
    buffer, status and timers are guarded by a lock. The writer is called
    outside the lock; a flush that comes due while a write is still running
    is postponed by one autosave delay.
    """

    def __init__(
        self,
        record: GardenRecord,
        writer: RecordWriter,
        scheduler: Scheduler,
        snapshot_storage: Optional[StoragePort] = None,
        autosave_delay: Optional[float] = None,
        snapshot_interval: Optional[float] = None,
        snapshot_key_prefix: Optional[str] = None,
        clock: Clock = utc_now
    ):
        """
        Initialize the coordinator and start the snapshot interval.

        Args:
            record: Last committed state of the record
            writer: Destination for saves
            scheduler: Timer source
            snapshot_storage: Where local safety snapshots go (None disables them)
            autosave_delay: Quiescent delay in seconds (defaults to configuration)
            snapshot_interval: Snapshot interval in seconds (defaults to configuration)
            snapshot_key_prefix: Snapshot key prefix (defaults to configuration)
            clock: Time source for status and snapshot timestamps
        """
        self.record = record
        self.writer = writer
        self.scheduler = scheduler
        self.snapshot_storage = snapshot_storage
        self.autosave_delay = config.autosave_delay if autosave_delay is None else autosave_delay
        self.snapshot_interval = config.snapshot_interval if snapshot_interval is None else snapshot_interval
        self.snapshot_key = f"{snapshot_key_prefix or config.snapshot_key_prefix}:{record.id}"
        self.clock = clock

        self.status = SaveStatus(last_saved=record.updated_at)
        self._pending = PendingChanges()
        self._debounce: Optional[Cancellable] = None
        self._snapshot_timer: Optional[Cancellable] = None
        self._disposed = False
        self._in_flight = False
        # Re-entrant: a writer may call notify_change or dispose from inside write()
        self._lock = threading.RLock()

        if self.snapshot_storage is not None and self.snapshot_interval > 0:
            self._snapshot_timer = self.scheduler.every(self.snapshot_interval, self.take_snapshot)

    @property
    def pending(self) -> PendingChanges:
        """Copy of the unsaved-change buffer."""
        with self._lock:
            return self._pending.model_copy()

    @property
    def has_unsaved_changes(self) -> bool:
        return self.status.has_unsaved_changes

    @property
    def disposed(self) -> bool:
        return self._disposed

    def notify_change(self, tiles: Optional[List[Any]] = None, layout: Any = None,
                      title: Optional[str] = None) -> None:
        """
        Record an edit and restart the debounce timer.

        Only the fields passed are updated; newer values replace older
        unsaved ones.
        """
        updates = {
            name: value
            for name, value in (("tiles", tiles), ("layout", layout), ("title", title))
            if value is not None
        }

        with self._lock:
            if self._disposed:
                return

            self._pending = self._pending.model_copy(update=updates)
            self.status = self.status.model_copy(update={"has_unsaved_changes": True})
            self._restart_debounce()

    def save_now(self) -> bool:
        """
        Save immediately, bypassing the debounce timer.

        Returns:
            True if nothing was pending or the write succeeded; False if the
            write failed or another write was still running
        """
        with self._lock:
            if self._disposed:
                return False

            self._cancel_debounce()

            if self._pending.is_empty() and not self._in_flight:
                self.status = self.status.model_copy(update={"status": "saved", "has_unsaved_changes": False})
                return True

        return self._flush()

    def _on_quiescent(self) -> None:
        with self._lock:
            self._debounce = None
        self._flush()

    def _flush(self) -> bool:
        with self._lock:
            if self._disposed:
                return False

            if self._in_flight:
                logging.debug(f"Write for record {self.record.id} still running, postponing save")
                self._restart_debounce()
                return False

            snapshot = self._pending.model_copy()
            if snapshot.is_empty():
                return True

            self._in_flight = True
            self.status = self.status.model_copy(update={"status": "saving"})
            changes = self._changes_from(snapshot)

        try:
            self.writer.write(self.record.id, changes)
        except Exception as e:
            logging.error(f"Auto-save failed for record {self.record.id}: {e}")
            with self._lock:
                self._in_flight = False
                if not self._disposed:
                    # Buffer stays intact so the next edit or manual save retries
                    self.status = self.status.model_copy(update={
                        "status": "error",
                        "error": str(e) or "Auto-save failed",
                        "has_unsaved_changes": True
                    })
            return False

        with self._lock:
            self._in_flight = False
            if self._disposed:
                return True

            now = self.clock()
            self.record = self.record.model_copy(update={**changes, "updated_at": now})
            self._pending = self._without(snapshot)
            self.status = SaveStatus(
                status="saved",
                last_saved=now,
                has_unsaved_changes=not self._pending.is_empty()
            )
            self.clear_snapshot()

        logging.info(f"Saved record {self.record.id}")
        return True

    def _changes_from(self, snapshot: PendingChanges) -> Dict[str, Any]:
        """Snapshot values with committed values filling untouched fields."""
        changes = {}
        for name in FIELDS:
            value = getattr(snapshot, name)
            changes[name] = value if value is not None else getattr(self.record, name)
        return changes

    def _without(self, snapshot: PendingChanges) -> PendingChanges:
        """Drop flushed fields from the buffer unless they were edited again meanwhile."""
        remaining = {}
        for name in FIELDS:
            current = getattr(self._pending, name)
            if current is not None and current is not getattr(snapshot, name):
                remaining[name] = current
        return PendingChanges(**remaining)

    def _restart_debounce(self) -> None:
        self._cancel_debounce()
        self._debounce = self.scheduler.after(self.autosave_delay, self._on_quiescent)

    def _cancel_debounce(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None

    # Local safety snapshots

    def take_snapshot(self) -> Optional[LocalSnapshot]:
        """
        Write the buffer (or committed values) to snapshot storage.

        Returns:
            The snapshot written, or None if snapshots are disabled or the write failed
        """
        with self._lock:
            if self._disposed or self.snapshot_storage is None:
                return None

            changes = self._changes_from(self._pending)
            snapshot = LocalSnapshot(
                garden_id=self.record.id,
                tiles=changes["tiles"] or [],
                layout=changes["layout"],
                title=changes["title"] or "",
                timestamp=self.clock()
            )

            try:
                self.snapshot_storage.write(self.snapshot_key, json.dumps(snapshot.to_document()).encode('utf-8'))
            except StorageError as e:
                logging.error(f"Failed to write local snapshot: {e}")
                return None

        logging.debug(f"Wrote local snapshot for record {self.record.id}")
        return snapshot

    def check_for_snapshot(self) -> Optional[LocalSnapshot]:
        """Return the stored snapshot for this record, if any."""
        if self.snapshot_storage is None:
            return None

        raw = self.snapshot_storage.read(self.snapshot_key)
        if raw is None:
            return None

        try:
            return LocalSnapshot.model_validate(json.loads(raw.decode('utf-8')))
        except (UnicodeDecodeError, ValueError, ValidationError) as e:
            logging.warning(f"Ignoring unreadable local snapshot: {e}")
            return None

    def restore_from_snapshot(self) -> bool:
        """
        Load a stored snapshot back into the pending buffer.

        Returns:
            True if a snapshot for this record was restored
        """
        snapshot = self.check_for_snapshot()
        if snapshot is None or snapshot.garden_id != self.record.id:
            return False

        with self._lock:
            self._pending = PendingChanges(tiles=snapshot.tiles, layout=snapshot.layout, title=snapshot.title)
            self.status = self.status.model_copy(update={"has_unsaved_changes": True})
        return True

    def clear_snapshot(self) -> None:
        if self.snapshot_storage is None:
            return
        try:
            self.snapshot_storage.remove(self.snapshot_key)
        except StorageError as e:
            logging.error(f"Failed to clear local snapshot: {e}")

    def dispose(self) -> None:
        """Stop both timers. A write already in flight completes as a no-op."""
        with self._lock:
            self._disposed = True
            self._cancel_debounce()
            if self._snapshot_timer is not None:
                self._snapshot_timer.cancel()
                self._snapshot_timer = None
