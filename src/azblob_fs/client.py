"""Low-level blob client bound to one container.

One method per REST call. Names are used as given: the reserved-prefix guard
lives in the filesystem facade, so the version store can address shadow
objects through this same client.
"""

import logging
import urllib.parse
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import (
    AuthenticationError,
    BlobAlreadyExistsError,
    BlobNotFoundError,
    ContainerNotFoundError,
    ServiceError,
)
from .listing import metadata_to_headers, parse_blob_list, properties_from_headers
from .models import BlobInfo, BlobProperties
from .transport.base import BlobTransport, TransportResponse

logger = logging.getLogger(__name__)

CONTAINER_QUERY = {"restype": "container"}
LIST_QUERY = {"restype": "container", "comp": "list"}


class BlobClient:
    """
    Maps blob operations onto transport requests and responses onto
    domain records or typed errors.

    Raises TransportError (from the transport) on network failure.
    """

    def __init__(self, transport: BlobTransport, container: str, blob_endpoint: str):
        """
        Initialize client.

        Args:
            transport: Transport executing the requests
            container: Container this client is bound to
            blob_endpoint: Service base URL, used to build copy-source URLs
        """
        if not container:
            raise ValueError("Container name is required")
        self.transport = transport
        self.container = container
        self.blob_endpoint = blob_endpoint.rstrip("/")

    def url_for(self, name: str) -> str:
        """Public URL of a blob in this container."""
        quoted = urllib.parse.quote(f"{self.container}/{name}", safe="/")
        return f"{self.blob_endpoint}/{quoted}"

    def _path(self, name: str) -> str:
        return f"{self.container}/{name}"

    def _check(self, resp: TransportResponse, name: Optional[str] = None) -> TransportResponse:
        """Raise the typed error for a failed response."""
        if resp.ok:
            return resp

        code = resp.error_code
        if resp.status == 404:
            if code == "ContainerNotFound" or name is None:
                raise ContainerNotFoundError(self.container)
            raise BlobNotFoundError(name)
        if resp.status == 409 and code == "BlobAlreadyExists":
            raise BlobAlreadyExistsError(name or "")
        if resp.status in (401, 403):
            raise AuthenticationError(
                f"Storage service rejected the request signature ({code or resp.status})"
            )
        raise ServiceError(resp.status, code)

    # ----- blobs -----

    def put_blob(
        self,
        name: str,
        body: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Mapping[str, str]] = None,
        overwrite: bool = True,
    ) -> Optional[str]:
        """
        Upload a block blob in a single request.

        Args:
            name: Blob name
            body: Full content
            content_type: Content-Type to store (service default if None)
            metadata: Custom metadata to store with the blob
            overwrite: If False, fail with BlobAlreadyExistsError instead of
                replacing an existing blob

        Returns:
            ETag of the new blob, if the service returned one
        """
        headers: Dict[str, str] = {"x-ms-blob-type": "BlockBlob"}
        if content_type:
            headers["Content-Type"] = content_type
        if metadata:
            headers.update(metadata_to_headers(metadata))
        if not overwrite:
            headers["If-None-Match"] = "*"

        resp = self.transport.request("PUT", self._path(name), headers=headers, body=body)
        self._check(resp, name)
        return resp.headers.get("ETag")

    def download_blob(self, name: str) -> Tuple[bytes, BlobProperties]:
        """Download a blob's content together with its properties."""
        resp = self.transport.request("GET", self._path(name))
        self._check(resp, name)
        return resp.body, properties_from_headers(resp.headers)

    def get_blob(self, name: str) -> bytes:
        """Download a blob's content."""
        return self.download_blob(name)[0]

    def head_blob(self, name: str) -> Optional[BlobProperties]:
        """
        Probe a blob's properties.

        Returns:
            BlobProperties, or None if the blob (or its container) is missing
        """
        resp = self.transport.request("HEAD", self._path(name))
        if resp.status == 404:
            return None
        self._check(resp, name)
        return properties_from_headers(resp.headers)

    def delete_blob(self, name: str) -> None:
        resp = self.transport.request("DELETE", self._path(name))
        self._check(resp, name)

    def copy_blob(self, source: str, destination: str) -> None:
        """
        Server-side copy within this container.

        Raises:
            BlobNotFoundError: If the source does not exist
        """
        headers = {"x-ms-copy-source": self.url_for(source)}
        resp = self.transport.request("PUT", self._path(destination), headers=headers)
        if resp.status == 404 and resp.error_code != "ContainerNotFound":
            raise BlobNotFoundError(source)
        self._check(resp, destination)

    def set_metadata(self, name: str, metadata: Mapping[str, str]) -> None:
        """Replace a blob's custom metadata."""
        resp = self.transport.request(
            "PUT",
            self._path(name),
            headers=metadata_to_headers(metadata),
            query={"comp": "metadata"},
        )
        self._check(resp, name)

    def list_blobs(self, prefix: str = "", page_size: Optional[int] = None) -> List[BlobInfo]:
        """
        List blobs, following continuation markers until exhausted.

        Args:
            prefix: Only names starting with this prefix
            page_size: Optional maxresults per request

        Returns:
            All matching entries in service order (lexicographic)
        """
        entries: List[BlobInfo] = []
        marker: Optional[str] = None
        while True:
            query = dict(LIST_QUERY)
            if prefix:
                query["prefix"] = prefix
            if marker:
                query["marker"] = marker
            if page_size:
                query["maxresults"] = str(page_size)

            resp = self.transport.request("GET", self.container, query=query)
            self._check(resp)
            page, marker = parse_blob_list(resp.body)
            entries.extend(page)
            if not marker:
                return entries
            logger.debug("Listing %s continues at marker %s", self.container, marker)

    # ----- container -----

    def create_container(self) -> None:
        resp = self.transport.request("PUT", self.container, query=CONTAINER_QUERY)
        self._check(resp)

    def delete_container(self) -> None:
        resp = self.transport.request("DELETE", self.container, query=CONTAINER_QUERY)
        self._check(resp)

    def container_exists(self) -> bool:
        resp = self.transport.request("HEAD", self.container, query=CONTAINER_QUERY)
        if resp.status == 404:
            return False
        self._check(resp)
        return True
