"""Transport package: the network seam of the storage client."""

from .base import BlobTransport, TransportResponse
from .http import HttpTransport
from .memory import InMemoryTransport

__all__ = ["BlobTransport", "TransportResponse", "HttpTransport", "InMemoryTransport"]
