#!/usr/bin/env python3
"""
tilegarden - Garden data migration and persistence

Command line entry point for inspecting, migrating, exporting and restoring
the garden block collection held in the configured storage backend.
"""

import argparse
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from . import __version__
from .config import ConfigManager, config as default_config
from .errors import GardenDataError, MigrationError
from .models import MigrationSummary
from .persistence import LoadResult, PersistenceStore
from .storage import DuckDBStorage, create_storage

RESAVE_TIMEOUT = 30.0


def setup_logging(cfg: ConfigManager):
    """Configure logging for the application."""
    level = getattr(logging, str(cfg.get("logging.level", "INFO")).upper(), logging.INFO)
    format_str = cfg.get("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file = cfg.get("logging.file")

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=format_str, handlers=handlers)


@contextmanager
def open_store(cfg: ConfigManager):
    """Create a store over the configured backend and release it afterwards."""
    storage = create_storage(cfg)
    try:
        yield PersistenceStore(
            storage,
            live_key=cfg.live_key,
            backup_key=cfg.backup_key,
            version=cfg.format_version
        )
    finally:
        if isinstance(storage, DuckDBStorage):
            storage.disconnect()
        elif hasattr(storage, "close"):
            storage.close()


def print_summary(summary: Optional[MigrationSummary]):
    """Print a migration summary for the user."""
    if summary is None:
        return

    print(f"Migrated {summary.successful_migrations} of {summary.total_items} blocks "
          f"({summary.failed_migrations} failed)")
    for warning in summary.warnings:
        print(f"  warning: {warning}")
    for error in summary.errors:
        print(f"  error: {error}")


def print_result(result: LoadResult):
    """Print what a load or import produced."""
    print(f"{len(result.blocks)} blocks loaded"
          f"{' (migrated from legacy format)' if result.migration_performed else ''}")
    print_summary(result.summary)


def wait_for_resave(result: LoadResult):
    """Block until the background re-save of migrated data finishes."""
    task = result.resave_task
    if task is None:
        return
    if not task.wait(RESAVE_TIMEOUT):
        logging.warning("Re-save of migrated data is still running")
    elif not task.succeeded:
        print(f"Warning: migrated data was not saved back: {task.error}")


def run_load(store: PersistenceStore, args) -> int:
    result = store.load()
    print_result(result)
    wait_for_resave(result)
    return 0


def run_migrate(store: PersistenceStore, args) -> int:
    text = Path(args.input).read_text(encoding='utf-8')
    result = store.import_data(text)
    print_result(result)

    if result.summary is not None and not result.migration_performed:
        raise MigrationError(f"No blocks could be migrated from {args.input}")

    if args.output:
        Path(args.output).write_text(store.export_data(result.blocks), encoding='utf-8')
        print(f"Wrote {args.output}")

    if args.save:
        store.save(result.blocks)
        print("Saved to storage")

    return 0


def run_export(store: PersistenceStore, args) -> int:
    result = store.load()
    wait_for_resave(result)
    document = store.export_data(result.blocks)

    if args.output:
        Path(args.output).write_text(document, encoding='utf-8')
        print(f"Exported {len(result.blocks)} blocks to {args.output}")
    else:
        print(document)
    return 0


def run_info(store: PersistenceStore, args) -> int:
    info = store.storage_info()
    print(f"Live slot:   {'present' if info.has_data else 'empty'} ({info.data_size} bytes)")
    print(f"Backup slot: {'present' if info.has_backup else 'empty'} ({info.backup_size} bytes)")
    print(f"Last modified: {info.last_modified or 'unknown'}")
    return 0


def run_restore(store: PersistenceStore, args) -> int:
    result = store.restore_from_backup()
    print_result(result)
    wait_for_resave(result)
    return 0


def run_clear(store: PersistenceStore, args) -> int:
    if not args.yes:
        print("Refusing to clear without --yes")
        return 1
    store.clear()
    print("Cleared live and backup slots")
    return 0


COMMANDS = {
    "load": run_load,
    "migrate": run_migrate,
    "export": run_export,
    "info": run_info,
    "restore": run_restore,
    "clear": run_clear,
}


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="tilegarden",
        description="tilegarden - Garden data migration and persistence",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tilegarden info                               # Show live/backup slot status
  tilegarden load                               # Load (and migrate) stored data
  tilegarden migrate old.json -o new.json       # Convert a legacy export
  tilegarden migrate old.json --save            # Convert and store as live data
  tilegarden restore                            # Roll back to the previous save
        """
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to a configuration file (default: config.yaml)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"tilegarden {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("load", help="Load stored data, migrating legacy formats")

    migrate = subparsers.add_parser("migrate", help="Import a document and convert it to the current format")
    migrate.add_argument("input", help="Exported or legacy JSON document")
    migrate.add_argument("-o", "--output", help="Write the converted document here")
    migrate.add_argument("--save", action="store_true", help="Save the converted blocks as live data")

    export = subparsers.add_parser("export", help="Export stored data as a portable document")
    export.add_argument("-o", "--output", help="Output file (default: stdout)")

    subparsers.add_parser("info", help="Show storage usage")
    subparsers.add_parser("restore", help="Restore the live slot from the backup slot")

    clear = subparsers.add_parser("clear", help="Delete live and backup data")
    clear.add_argument("--yes", action="store_true", help="Confirm deletion")

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    cfg = ConfigManager(args.config) if args.config else default_config
    setup_logging(cfg)

    try:
        with open_store(cfg) as store:
            return COMMANDS[args.command](store, args)

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 130

    except (GardenDataError, OSError, ValueError) as e:
        logging.error(f"{args.command} failed: {e}")
        print(f"\n{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
