"""Storage error taxonomy.

A missing note is not an error: lookups return None and deleting an absent
id is a no-op.
"""
from __future__ import annotations


class StorageError(Exception):
    """Base class for every failure raised by the storage layer."""


class StorageInitError(StorageError):
    """The storage medium could not be created or reached."""


class NotInitializedError(StorageError):
    """A backend was used before init() completed."""


class ValidationError(StorageError):
    """A note (or storage selection) failed a precondition."""


class MediumIOError(StorageError):
    """Reading, writing or parsing the medium failed."""
