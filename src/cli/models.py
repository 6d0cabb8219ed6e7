"""Data models for CLI operations."""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

from src.cli.output import OutputHandler
from src.drive.config import DriveConfig
from src.drive.connector import CachingConnector
from src.remote_client.memory_backend import MemoryBackend

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT = "site-drive.yaml"


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): Configuration, snapshot or backend failure
    - NOT_FOUND (2): The path does not lead to an object
    - INVALID_USAGE (3): The operation is not allowed on the object or
      its arguments are invalid

    Example:
        >>> raise typer.Exit(ExitCode.NOT_FOUND)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    NOT_FOUND = 2
    INVALID_USAGE = 3


@dataclass
class DriveSession:
    """Settings of one command invocation and the drive opened from them.

    The connector is created on first use, so commands which fail early (or
    only print help) never load the snapshot.

    Attributes:
        config: Effective drive configuration
        output: Terminal output of the invocation
    """
    config: DriveConfig
    output: OutputHandler = field(default_factory=OutputHandler)
    _connector: Optional[CachingConnector] = field(default=None, repr=False)

    @property
    def snapshot_path(self) -> str:
        return self.config.snapshot_path or DEFAULT_SNAPSHOT

    @property
    def connector(self) -> CachingConnector:
        if self._connector is None:
            backend = MemoryBackend.from_snapshot(self.snapshot_path)
            self._connector = CachingConnector.from_config(backend, self.config)
            logger.debug(f"Opened drive on {self.snapshot_path} at root '{self.config.root}'")
        return self._connector
