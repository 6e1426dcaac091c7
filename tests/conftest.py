"""Shared test fixtures and utilities."""

import pytest

from azblob_fs.config import parse_connection_string
from azblob_fs.filesystem import BlobFileSystem
from azblob_fs.transport import InMemoryTransport

CONTAINER = "test-container"
START_TIME = 1_700_000_000


class FakeClock:
    """Controllable stand-in for time.time."""

    def __init__(self, start: float = START_TIME):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float = 1.0) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def credentials():
    """Azurite well-known development account."""
    return parse_connection_string("UseDevelopmentStorage=true")


@pytest.fixture
def backend(clock):
    return InMemoryTransport(clock=clock)


@pytest.fixture
def fs(credentials, backend, clock):
    """Filesystem on an in-memory backend with the container already created."""
    filesystem = BlobFileSystem(credentials, CONTAINER, transport=backend, clock=clock)
    assert filesystem.create_container()
    return filesystem


@pytest.fixture
def shadow_names(backend):
    """Factory returning every name under the reserved version prefix."""
    def _names():
        return [n for n in backend.blob_names(CONTAINER) if n.startswith(".versions/")]
    return _names
