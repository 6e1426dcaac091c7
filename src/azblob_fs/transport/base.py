"""Blob transport protocol.

The core never talks HTTP directly. It hands a transport one request at a
time and gets back status, headers and body. Non-2xx statuses are returned,
not raised; only a failure to complete the exchange (connection refused,
DNS, timeout) raises TransportError.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol

from requests.structures import CaseInsensitiveDict


@dataclass
class TransportResponse:
    """Raw result of one request."""
    status: int
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: bytes = b""

    def __post_init__(self):
        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers or {})

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def error_code(self) -> Optional[str]:
        """Service error code (x-ms-error-code), if any."""
        return self.headers.get("x-ms-error-code")


class BlobTransport(Protocol):
    """
    Protocol for blob transports.

    Paths are relative to the blob endpoint: "container" for container
    operations, "container/blob/path" for blob operations.
    """

    def request(
        self,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        query: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
    ) -> TransportResponse:
        """
        Perform one request.

        Args:
            method: HTTP verb
            path: Endpoint-relative resource path (not URL-encoded)
            headers: Operation headers (x-ms-blob-type, x-ms-meta-*, ...)
            query: Query parameters
            body: Request body

        Returns:
            TransportResponse, whatever the status

        Raises:
            TransportError: If the exchange could not be completed
        """
        ...
