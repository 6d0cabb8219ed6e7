"""Root pytest configuration for all tests.

Provides a sample repository served by the in-memory backend, a connector on
top of it driven by a fake clock, and a call-counting view of the backend.
"""

from unittest.mock import MagicMock

import pytest

from src.drive.connector import CachingConnector
from src.remote_client.memory_backend import MemoryBackend
from tests.fixtures.sample_repository import sample_snapshot
from tests.helpers.fake_clock import FakeClock


@pytest.fixture
def clock():
    """Manually advanced time source, starting well above zero."""
    return FakeClock()


@pytest.fixture
def snapshot_data():
    return sample_snapshot()


@pytest.fixture
def memory_backend(snapshot_data):
    return MemoryBackend(snapshot_data)


@pytest.fixture
def backend(memory_backend):
    """The sample backend wrapped in a mock recording every call."""
    return MagicMock(wraps=memory_backend)


@pytest.fixture
def connector(backend, clock):
    return CachingConnector(backend, clock=clock)
