"""Remote repository access for the site drive.

This package defines the backend contract the drive is written against, the
error translation and throttling retry wrapped around every backend call, and
an in-memory backend serving YAML repository snapshots.
"""

from .errors import (
    DriveError,
    BackendError,
    ObjectNotFoundError,
    ObjectExistsError,
    BackendUnavailableError,
    SnapshotError,
)
from .backend import Backend, Record
from .memory_backend import MemoryBackend
from .snapshot import SnapshotStore

__all__ = [
    "DriveError",
    "BackendError",
    "ObjectNotFoundError",
    "ObjectExistsError",
    "BackendUnavailableError",
    "SnapshotError",
    "Backend",
    "Record",
    "MemoryBackend",
    "SnapshotStore",
]
