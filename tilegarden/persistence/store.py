"""
Versioned persistence for garden block collections.

The store owns two slots in a StoragePort: the live slot holding the current
envelope and a backup slot holding the previous one. Loading detects the
document format and migrates legacy data on the fly.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError

from ..clock import Clock, utc_now
from ..config import config
from ..errors import GardenDataError, GardenImportError, ParseError, RestoreError, SaveError
from ..migration import BlockMigrator, DocumentShape, auto_migrate, detect_document_shape, extract_blocks
from ..migration.detection import has_identity
from ..models import (
    Block,
    EnvelopeMetadata,
    MigrationSummary,
    PersistedEnvelope,
    StorageInfo,
    StoredBlock,
    Template,
)
from ..scheduling import BackgroundTask, Scheduler, ThreadingScheduler
from ..storage import StoragePort
from ..templates import TemplateRegistry
from .events import DATA_CLEARED, DATA_SAVED, EventBus

_TIMESTAMP = TypeAdapter(datetime)


@dataclass
class LoadResult:
    """
    What load(), import_data() and restore_from_backup() hand back.

    `resave_task` is set when legacy data was migrated during a load; it
    tracks the background write of the migrated collection.
    """
    blocks: List[StoredBlock] = field(default_factory=list)
    migration_performed: bool = False
    summary: Optional[MigrationSummary] = None
    resave_task: Optional[BackgroundTask] = None


class PersistenceStore:
    """
    Saves, loads, exports and restores block collections.
    """

    def __init__(
        self,
        storage: StoragePort,
        registry: Optional[TemplateRegistry] = None,
        events: Optional[EventBus] = None,
        scheduler: Optional[Scheduler] = None,
        live_key: Optional[str] = None,
        backup_key: Optional[str] = None,
        version: Optional[str] = None,
        clock: Clock = utc_now
    ):
        """
        Initialize the store.

        Args:
            storage: Backend holding the live and backup slots
            registry: Template registry used when migrating legacy data
            events: Event bus for saved/cleared notifications
            scheduler: Runs the post-migration re-save (threads by default)
            live_key: Key of the live slot (defaults to configuration)
            backup_key: Key of the backup slot (defaults to configuration)
            version: Envelope version to write (defaults to configuration)
            clock: Time source for save timestamps
        """
        self.storage = storage
        self.migrator = BlockMigrator(registry, clock=clock)
        self.events = events or EventBus()
        self.scheduler = scheduler or ThreadingScheduler()
        self.live_key = live_key or config.live_key
        self.backup_key = backup_key or config.backup_key
        self.version = version or config.format_version
        self.clock = clock
        # Serialises slot mutations; re-entrant because restore re-runs load
        self._lock = threading.RLock()

    # Saving

    def save(self, blocks: Iterable[StoredBlock]) -> PersistedEnvelope:
        """
        Save a block collection to the live slot.

        The current live envelope is copied to the backup slot before the new
        one is written. If the live write then fails the backup has already
        advanced; it still holds the last successful save.

        Args:
            blocks: Blocks, or mappings; ones that do not parse are stored unchanged

        Returns:
            The envelope that was written

        Raises:
            SaveError: If encoding or writing fails
        """
        with self._lock:
            try:
                existing = self.storage.read(self.live_key)
                if existing is not None:
                    self.storage.write(self.backup_key, existing)

                now = self.clock()
                stamped = [_stamp(_as_block(b), now) for b in blocks]
                envelope = self._build_envelope(stamped, now)
                data = json.dumps(envelope.to_document(), ensure_ascii=False).encode('utf-8')
                self.storage.write(self.live_key, data)

            except Exception as e:
                raise SaveError(f"Failed to save garden data: {e}") from e

        logging.info(f"Saved {len(envelope.blocks)} blocks ({len(data)} bytes)")
        self.events.emit(DATA_SAVED, {"blocks": envelope.blocks, "metadata": envelope.metadata})
        return envelope

    def _build_envelope(self, blocks: List[StoredBlock], now: datetime) -> PersistedEnvelope:
        return PersistedEnvelope(
            version=self.version,
            timestamp=now,
            blocks=blocks,
            metadata=EnvelopeMetadata(
                total_blocks=len(blocks),
                template_usage=template_usage(blocks),
                last_modified=now
            )
        )

    # Loading

    def load(self) -> LoadResult:
        """
        Load the live collection, migrating legacy data if needed.

        A successful migration is written back in the background; the
        returned LoadResult carries the handle of that task. Its failure is
        logged and never fails the load.

        Returns:
            LoadResult

        Raises:
            ParseError: If the live slot holds malformed data
            GardenDataError: If the storage backend fails
        """
        raw = self.storage.read(self.live_key)
        if raw is None:
            return LoadResult()

        try:
            document = json.loads(raw.decode('utf-8'))
        except (UnicodeDecodeError, ValueError) as e:
            raise ParseError(f"Failed to parse saved garden data: {e}") from e

        try:
            return self._resolve_document(document, persist=True)
        except GardenDataError:
            raise
        except Exception as e:
            raise GardenDataError(f"Failed to load garden data: {e}") from e

    def _resolve_document(self, document: Any, persist: bool) -> LoadResult:
        shape = detect_document_shape(document)
        raw_blocks = extract_blocks(document, shape)

        if shape == DocumentShape.CURRENT:
            return LoadResult(blocks=self._identified_blocks(raw_blocks))

        if not raw_blocks:
            return LoadResult()

        logging.info(f"Detected legacy document shape '{shape.value}' with {len(raw_blocks)} blocks")
        needed, batch = auto_migrate(raw_blocks, self.migrator)

        if needed and batch.blocks:
            task = self._schedule_resave(batch.blocks) if persist else None
            return LoadResult(
                blocks=batch.blocks,
                migration_performed=True,
                summary=batch.summary,
                resave_task=task
            )

        if needed:
            logging.warning(f"Migration produced no blocks: {'; '.join(batch.summary.errors)}")

        return LoadResult(
            blocks=self._identified_blocks(raw_blocks),
            summary=batch.summary if batch else None
        )

    def _identified_blocks(self, raw_blocks: List[Any]) -> List[StoredBlock]:
        """Keep elements carrying an id and a type, parsed where they fit the current schema."""
        return [_as_block(item) for item in raw_blocks if has_identity(item)]

    def _schedule_resave(self, blocks: List[Block]) -> BackgroundTask:
        task = BackgroundTask("resave-migrated-data", lambda: self.save(blocks))
        return task.schedule(self.scheduler)

    # Export / import

    def export_data(self, blocks: Iterable[StoredBlock]) -> str:
        """
        Encode a collection as a portable, pretty-printed document.

        Args:
            blocks: The blocks to export

        Returns:
            JSON document text
        """
        now = self.clock()
        envelope = self._build_envelope([_as_block(b) for b in blocks], now)
        return json.dumps(envelope.to_document(), indent=2, ensure_ascii=False)

    def import_data(self, text: str) -> LoadResult:
        """
        Decode an exported (or legacy) document without touching storage.

        Args:
            text: Document text

        Returns:
            LoadResult; the caller decides whether to save the blocks

        Raises:
            GardenImportError: If the document cannot be decoded
        """
        try:
            document = json.loads(text)
        except (TypeError, ValueError) as e:
            raise GardenImportError(f"Failed to import garden data: {e}") from e

        return self._resolve_document(document, persist=False)

    # Maintenance

    def clear(self) -> None:
        """Remove both slots and notify listeners."""
        with self._lock:
            self.storage.remove(self.live_key)
            self.storage.remove(self.backup_key)

        logging.info("Cleared garden data and backup")
        self.events.emit(DATA_CLEARED)

    def restore_from_backup(self) -> LoadResult:
        """
        Promote the backup slot to the live slot and load it.

        If loading the backup fails, the live slot is put back exactly as it
        was before the attempt.

        Returns:
            LoadResult for the restored data

        Raises:
            RestoreError: If there is no backup or it cannot be loaded
        """
        with self._lock:
            backup = self.storage.read(self.backup_key)
            if backup is None:
                raise RestoreError("No backup data found")

            current = self.storage.read(self.live_key)

            try:
                self.storage.write(self.live_key, backup)
                result = self.load()
            except Exception as e:
                self._revert_live(current)
                raise RestoreError(f"Failed to restore from backup: {e}") from e

        logging.info(f"Restored {len(result.blocks)} blocks from backup")
        return result

    def _revert_live(self, previous: Optional[bytes]) -> None:
        try:
            if previous is None:
                self.storage.remove(self.live_key)
            else:
                self.storage.write(self.live_key, previous)
        except Exception as e:
            logging.error(f"Failed to revert live slot after restore failure: {e}")

    def storage_info(self) -> StorageInfo:
        """
        Describe the slots without changing them.

        Returns:
            StorageInfo; last_modified is None when the live slot is absent or corrupt
        """
        data = self.storage.read(self.live_key)
        backup = self.storage.read(self.backup_key)

        last_modified = None
        if data:
            last_modified = _last_modified(data)

        return StorageInfo(
            has_data=data is not None,
            has_backup=backup is not None,
            data_size=len(data) if data else 0,
            backup_size=len(backup) if backup else 0,
            last_modified=last_modified
        )


def template_usage(blocks: Iterable[StoredBlock]) -> Dict[str, int]:
    """Count how many blocks are bound to each template id."""
    usage: Dict[str, int] = {}
    for block in blocks:
        template_id = _template_id(block)
        if template_id:
            usage[template_id] = usage.get(template_id, 0) + 1
    return usage


def _template_id(block: StoredBlock) -> Optional[str]:
    template = block.template if isinstance(block, Block) else block.get("template")
    if isinstance(template, Template):
        return template.id
    if isinstance(template, dict):
        return template.get("id")
    if isinstance(template, str):
        return template
    return None


def _as_block(block: StoredBlock) -> StoredBlock:
    """Parse a mapping as a Block; one that does not fit the schema is returned unchanged."""
    if isinstance(block, Block):
        return block
    try:
        return Block.model_validate(block)
    except ValidationError as e:
        if not isinstance(block, dict):
            raise
        logging.debug(f"Keeping block {block.get('id')} unparsed: {e.error_count()} validation errors")
        return block


def _stamp(block: StoredBlock, now: datetime) -> StoredBlock:
    if isinstance(block, Block):
        return block.model_copy(update={"updated_at": now})
    return {**block, "updatedAt": _TIMESTAMP.dump_python(now, mode="json")}


def _last_modified(data: bytes) -> Optional[str]:
    try:
        document = json.loads(data.decode('utf-8'))
    except (UnicodeDecodeError, ValueError):
        logging.debug("Live slot is not valid JSON; last-modified unknown")
        return None

    if not isinstance(document, dict):
        return None

    timestamp = document.get("timestamp")
    if isinstance(timestamp, str) and timestamp:
        return timestamp

    metadata = document.get("metadata")
    fallback = metadata.get("lastModified") if isinstance(metadata, dict) else None
    if isinstance(fallback, str) and fallback:
        return fallback
    return None
