"""Typed exception hierarchy for remote repository access.

This module defines the root of the site-drive exception tree and the errors
raised below the path-resolution layer. All exceptions inherit from DriveError
so callers can catch any application-level failure with a single clause, and
each one keeps its context as attributes to help with debugging.
"""

from typing import Optional


class DriveError(Exception):
    """Base exception for all site-drive errors.

    Use this to catch any application-level error from the drive.
    """
    pass


class BackendError(DriveError):
    """Base exception for failures reported by a backend."""
    pass


class ObjectNotFoundError(BackendError):
    """Raised when a path does not lead to a live object."""

    def __init__(self, path: str, reason: Optional[str] = None):
        message = f"Object not found: '{path}'"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.path = path
        self.reason = reason


class ObjectExistsError(BackendError):
    """Raised when creating or placing an object whose name is already taken."""

    def __init__(self, name: str, parent_path: str):
        super().__init__(
            f"An object named '{name}' already exists in '{parent_path or '/'}'"
        )
        self.name = name
        self.parent_path = parent_path


class BackendUnavailableError(BackendError):
    """Raised when a raw backend operation fails below the drive layer."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        message = f"Backend operation '{operation}' failed"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.operation = operation
        self.reason = reason


class SnapshotError(BackendError):
    """Raised when a repository snapshot cannot be read or written."""

    def __init__(self, snapshot_path: str, message: str):
        super().__init__(f"Snapshot error in {snapshot_path}: {message}")
        self.snapshot_path = snapshot_path
        self.message = message
