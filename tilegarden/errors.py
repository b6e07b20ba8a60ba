"""
Exception types for tilegarden.

Fatal conditions are raised as one of these; recoverable content problems are
reported as warnings on migration results instead.
"""


class GardenDataError(Exception):
    """Base class for all garden data errors."""


class StorageError(GardenDataError):
    """A storage backend failed to read, write or remove a slot."""


class ParseError(GardenDataError):
    """Stored or imported data could not be decoded."""


class SaveError(GardenDataError):
    """Saving the block collection failed."""


class GardenImportError(GardenDataError):
    """An externally supplied document could not be imported."""


class RestoreError(GardenDataError):
    """Restoring the live slot from the backup slot failed."""


class MigrationError(GardenDataError):
    """Legacy data could not be migrated."""
