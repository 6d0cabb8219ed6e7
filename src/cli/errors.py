"""Typed exception hierarchy for CLI-related errors.

All exceptions inherit from CLIError, which in turn belongs to the DriveError
tree, so the command handlers catch them together with drive errors.
"""

from typing import Optional

from src.remote_client.errors import DriveError


class CLIError(DriveError):
    """Base exception for all CLI-related errors."""
    pass


class LocalFileError(CLIError):
    """Raised when a local file given on the command line cannot be read."""

    def __init__(self, file_path: str, reason: Optional[str] = None):
        message = f"Cannot read local file {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.reason = reason


class RecurseRequiredError(CLIError):
    """Raised when removing a non-empty container without --recurse."""

    def __init__(self, path: str):
        super().__init__(f"'{path or '/'}' has children; use --recurse to remove it")
        self.path = path
