"""Pytest configuration and fixtures for integration tests."""

from pathlib import Path
from typing import Callable

import pytest

from src.drive.config import DriveConfig
from src.drive.connector import CachingConnector
from src.remote_client.memory_backend import MemoryBackend
from src.remote_client.snapshot import SnapshotStore
from tests.fixtures.sample_repository import sample_snapshot


@pytest.fixture
def snapshot_path(tmp_path: Path) -> str:
    """Sample repository saved to a temporary snapshot file."""
    path = tmp_path / "repository.yaml"
    SnapshotStore.save(str(path), sample_snapshot())
    return str(path)


@pytest.fixture
def open_drive(clock) -> Callable[..., CachingConnector]:
    """Open a drive on a snapshot file, the way each CLI invocation does.

    Returns:
        Function taking the snapshot path and an optional root path
    """
    def _open(snapshot: str, root: str = "") -> CachingConnector:
        backend = MemoryBackend.from_snapshot(snapshot)
        return CachingConnector.from_config(backend, DriveConfig(root=root), clock)
    return _open
