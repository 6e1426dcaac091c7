"""In-memory Blob service for tests (avoids an Azurite dependency).

Implements the subset of the REST surface that BlobClient uses, with the
same status codes and x-ms-error-code values as the real service, so the
whole stack above the transport runs unchanged against it.
"""

import itertools
import time
import urllib.parse
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional, Tuple
from xml.sax.saxutils import escape

from requests.structures import CaseInsensitiveDict

from ..constants import DEFAULT_CONTENT_TYPE, META_HEADER_PREFIX
from ..errors import TransportError
from ..signing import rfc1123_date
from .base import TransportResponse


@dataclass
class _StoredBlob:
    body: bytes
    content_type: str
    last_modified: float
    etag: str
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class _Fault:
    method: Optional[str]
    matches: Callable[[str], bool]
    remaining: int


class InMemoryTransport:
    """
    Process-local stand-in for the Blob service.

    Containers map blob names to bodies plus properties. Requests are
    recorded in self.calls as (method, path, query) for assertions.
    """

    def __init__(self, account_name: str = "devstoreaccount1", clock: Callable[[], float] = time.time):
        """
        Initialize in-memory backend.

        Args:
            account_name: Account name, used to parse path-style copy sources
            clock: Source of Last-Modified timestamps
        """
        self.account_name = account_name
        self.clock = clock
        self.containers: Dict[str, Dict[str, _StoredBlob]] = {}
        self.calls: List[Tuple[str, str, Dict[str, str]]] = []
        self._faults: List[_Fault] = []
        self._etags = itertools.count(1)

    # ----- test helpers -----

    def fail_next(
        self,
        method: Optional[str] = None,
        path_contains: str = "",
        times: int = 1,
    ) -> None:
        """
        Make the next matching request(s) raise TransportError.

        Args:
            method: Only fail this verb (None for any)
            path_contains: Only fail paths containing this substring
            times: Number of requests to fail
        """
        self._faults.append(_Fault(method, lambda p: path_contains in p, times))

    def blob_names(self, container: str) -> List[str]:
        return sorted(self.containers.get(container, {}))

    # ----- transport -----

    def request(
        self,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        query: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
    ) -> TransportResponse:
        method = method.upper()
        headers = CaseInsensitiveDict(headers or {})
        query = dict(query or {})
        self.calls.append((method, path, query))
        self._maybe_fail(method, path)

        container, _, name = path.partition("/")
        if not name:
            return self._container_op(method, container, query)
        return self._blob_op(method, container, name, headers, query, body)

    def _maybe_fail(self, method: str, path: str) -> None:
        for fault in self._faults:
            if fault.remaining > 0 and fault.method in (None, method) and fault.matches(path):
                fault.remaining -= 1
                raise TransportError(f"Injected failure for {method} {path}")

    # ----- containers -----

    def _container_op(self, method: str, container: str, query: Dict[str, str]) -> TransportResponse:
        exists = container in self.containers

        if method == "GET" and query.get("comp") == "list":
            if not exists:
                return _error(404, "ContainerNotFound")
            return self._list(container, query)

        if query.get("restype") != "container":
            return _error(400, "InvalidQueryParameterValue")

        if method == "PUT":
            if exists:
                return _error(409, "ContainerAlreadyExists")
            self.containers[container] = {}
            return TransportResponse(201)
        if method == "DELETE":
            if not exists:
                return _error(404, "ContainerNotFound")
            del self.containers[container]
            return TransportResponse(202)
        if method == "HEAD":
            return TransportResponse(200) if exists else _error(404, "ContainerNotFound", body=False)
        return _error(405, "UnsupportedHttpVerb")

    def _list(self, container: str, query: Dict[str, str]) -> TransportResponse:
        prefix = query.get("prefix", "")
        marker = query.get("marker", "")
        max_results = int(query.get("maxresults", 5000))

        names = [n for n in sorted(self.containers[container]) if n.startswith(prefix)]
        if marker:
            names = [n for n in names if n >= marker]
        page, rest = names[:max_results], names[max_results:]

        parts = [
            '<?xml version="1.0" encoding="utf-8"?>',
            f'<EnumerationResults ContainerName="{escape(container)}">',
            f"<Prefix>{escape(prefix)}</Prefix>",
            "<Blobs>",
        ]
        for name in page:
            blob = self.containers[container][name]
            parts.append(
                f"<Blob><Name>{escape(name)}</Name><Properties>"
                f"<Last-Modified>{_http_date(blob.last_modified)}</Last-Modified>"
                f"<Etag>{escape(blob.etag)}</Etag>"
                f"<Content-Length>{len(blob.body)}</Content-Length>"
                f"<Content-Type>{escape(blob.content_type)}</Content-Type>"
                f"<BlobType>BlockBlob</BlobType>"
                f"</Properties></Blob>"
            )
        parts.append("</Blobs>")
        parts.append(f"<NextMarker>{escape(rest[0]) if rest else ''}</NextMarker>")
        parts.append("</EnumerationResults>")
        body = "".join(parts).encode("utf-8")
        return TransportResponse(200, {"Content-Type": "application/xml"}, body)

    # ----- blobs -----

    def _blob_op(
        self,
        method: str,
        container: str,
        name: str,
        headers: CaseInsensitiveDict,
        query: Dict[str, str],
        body: bytes,
    ) -> TransportResponse:
        if container not in self.containers:
            return _error(404, "ContainerNotFound", body=method != "HEAD")
        blobs = self.containers[container]
        blob = blobs.get(name)

        if method == "PUT" and query.get("comp") == "metadata":
            if blob is None:
                return _error(404, "BlobNotFound")
            blob.metadata = _metadata(headers)
            blob.etag = self._next_etag()
            return TransportResponse(200, {"ETag": blob.etag})

        if method == "PUT" and "x-ms-copy-source" in headers:
            source = self._resolve_copy_source(headers["x-ms-copy-source"])
            if source is None:
                return _error(404, "CannotVerifyCopySource")
            src_container, src_name = source
            src = self.containers.get(src_container, {}).get(src_name)
            if src is None:
                return _error(404, "CannotVerifyCopySource")
            blobs[name] = _StoredBlob(
                body=src.body,
                content_type=src.content_type,
                last_modified=self.clock(),
                etag=self._next_etag(),
                metadata=dict(src.metadata),
            )
            return TransportResponse(202, {"x-ms-copy-status": "success", "ETag": blobs[name].etag})

        if method == "PUT":
            if headers.get("x-ms-blob-type") != "BlockBlob":
                return _error(400, "MissingRequiredHeader")
            if headers.get("If-None-Match") == "*" and blob is not None:
                return _error(409, "BlobAlreadyExists")
            blobs[name] = _StoredBlob(
                body=bytes(body),
                content_type=headers.get("Content-Type") or DEFAULT_CONTENT_TYPE,
                last_modified=self.clock(),
                etag=self._next_etag(),
                metadata=_metadata(headers),
            )
            return TransportResponse(201, {"ETag": blobs[name].etag})

        if blob is None:
            return _error(404, "BlobNotFound", body=method != "HEAD")

        if method in ("GET", "HEAD"):
            response_headers = {
                "Content-Length": str(len(blob.body)),
                "Content-Type": blob.content_type,
                "Last-Modified": _http_date(blob.last_modified),
                "ETag": blob.etag,
                "x-ms-blob-type": "BlockBlob",
            }
            for key, value in blob.metadata.items():
                response_headers[f"{META_HEADER_PREFIX}{key}"] = value
            return TransportResponse(200, response_headers, blob.body if method == "GET" else b"")

        if method == "DELETE":
            del blobs[name]
            return TransportResponse(202)

        return _error(405, "UnsupportedHttpVerb")

    def _resolve_copy_source(self, source_url: str) -> Optional[Tuple[str, str]]:
        path = urllib.parse.unquote(urllib.parse.urlparse(source_url).path).lstrip("/")
        segments = path.split("/")
        # Path-style endpoints (Azurite) carry the account as the first segment
        if segments and segments[0] == self.account_name and len(segments) > 2:
            segments = segments[1:]
        if len(segments) < 2:
            return None
        return segments[0], "/".join(segments[1:])

    def _next_etag(self) -> str:
        return f'"0x{next(self._etags):X}"'


def _metadata(headers: CaseInsensitiveDict) -> Dict[str, str]:
    return {
        name.lower()[len(META_HEADER_PREFIX):]: value
        for name, value in headers.items()
        if name.lower().startswith(META_HEADER_PREFIX)
    }


def _http_date(timestamp: float) -> str:
    return rfc1123_date(datetime.fromtimestamp(timestamp, tz=timezone.utc))


def _error(status: int, code: str, body: bool = True) -> TransportResponse:
    payload = b""
    if body:
        payload = (
            '<?xml version="1.0" encoding="utf-8"?>'
            f"<Error><Code>{code}</Code><Message>{code}</Message></Error>"
        ).encode("utf-8")
    return TransportResponse(status, {"x-ms-error-code": code}, payload)
