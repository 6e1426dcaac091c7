"""File-like access to one blob container, with client-side version history.

BlobFileSystem is the public entry point. It fronts two namespaces in the
same container:

- the primary store: ordinary blob paths addressed by callers
- the version store: archived bodies under the reserved ``.versions/`` prefix

Every public method validates its path argument, so callers can never reach
the version store through the primary operations.

Failure policy:

- Content-returning reads (get, get_version, read_stream) raise.
- Queries (exists, get_size, get_mime_type, get_metadata, list, ...) return
  a sentinel (False, None, []) on failure and log the cause.
- Mutations return an OperationResult: truthy on success, carrying the
  exception on failure.
"""

import io
import logging
import mimetypes
import time
from typing import Any, BinaryIO, Callable, Dict, List, Mapping, Optional, Union

from .client import BlobClient
from .config import StorageCredentials, parse_connection_string
from .constants import CURRENT_VERSION, DEFAULT_TIMEOUT
from .errors import BlobNotFoundError, BlobStorageError, InvalidStreamError
from .listing import metadata_to_headers
from .models import BlobInfo, BlobProperties, VersionRecord
from .paths import is_reserved, validate_blob_path, validate_prefix
from .results import OperationResult
from .transport.base import BlobTransport
from .transport.http import HttpTransport
from .versioning import VersionStore, order_versions

logger = logging.getLogger(__name__)

Content = Union[bytes, bytearray, memoryview, str]


def _to_bytes(contents: Content) -> bytes:
    if isinstance(contents, str):
        return contents.encode("utf-8")
    if isinstance(contents, (bytes, bytearray, memoryview)):
        return bytes(contents)
    raise TypeError(f"Blob contents must be bytes or str, got {type(contents).__name__}")


def guess_content_type(path: str) -> Optional[str]:
    """Content-Type from the path's extension, or None to use the service default."""
    return mimetypes.guess_type(path)[0]


class BlobFileSystem:
    """
    File operations on one container.

    Bound to a single container and credential for its lifetime.
    """

    def __init__(
        self,
        credentials: StorageCredentials,
        container: str,
        transport: Optional[BlobTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
        versioning: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize filesystem.

        Args:
            credentials: Account credentials and endpoint
            container: Container name
            transport: Transport to use (signed HTTP by default)
            timeout: Per-request deadline for the default transport
            versioning: Archive the previous body on every overwrite
            clock: Source of archive timestamps

        Raises:
            AuthenticationError: If the account key is malformed
        """
        self.credentials = credentials
        self.container = container
        self.transport = transport or HttpTransport(credentials, timeout=timeout)
        self.versioning = versioning
        self.client = BlobClient(self.transport, container, credentials.blob_endpoint)
        self.versions = VersionStore(self.client, clock=clock)

    @classmethod
    def from_connection_string(
        cls, connection_string: str, container: str, **kwargs: Any
    ) -> "BlobFileSystem":
        """
        Create a filesystem from an Azure Storage connection string.

        Raises:
            InvalidConnectionStringError: Before any request is made, if
                the connection string is malformed or incomplete
        """
        return cls(parse_connection_string(connection_string), container, **kwargs)

    def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "BlobFileSystem":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ----- writes -----

    def _archive_current(self, path: str) -> Optional[str]:
        """Best-effort snapshot of path before an overwrite."""
        try:
            if self.client.head_blob(path) is None:
                return None
            return self.versions.snapshot(path)
        except BlobStorageError as e:
            logger.warning("Could not archive current version of %s, writing anyway: %s", path, e)
            return None

    def write(
        self,
        path: str,
        contents: Content,
        content_type: Optional[str] = None,
        metadata: Optional[Mapping[str, str]] = None,
        overwrite: bool = True,
    ) -> OperationResult:
        """
        Write a blob, archiving whatever it replaces.

        The archive step never blocks the write: if it fails, the failure
        is logged and the new content is written regardless.

        Args:
            path: Blob path
            contents: New content (str is encoded as UTF-8)
            content_type: Content-Type (guessed from the extension if None)
            metadata: Custom metadata to store with the blob
            overwrite: If False, fail with BlobAlreadyExistsError rather
                than replace an existing blob

        Returns:
            OperationResult whose value is the version id of the archived
            previous body (None if nothing was archived)

        Raises:
            ValueError: If a metadata key is not a valid metadata name
        """
        validate_blob_path(path)
        body = _to_bytes(contents)
        if metadata:
            metadata_to_headers(metadata)

        archived = None
        if self.versioning and overwrite:
            archived = self._archive_current(path)

        try:
            self.client.put_blob(
                path,
                body,
                content_type=content_type or guess_content_type(path),
                metadata=metadata,
                overwrite=overwrite,
            )
        except BlobStorageError as e:
            logger.warning("Write of %s failed: %s", path, e)
            return OperationResult.failure(e)
        return OperationResult.success(archived)

    push = write

    def write_stream(self, path: str, stream: BinaryIO, **kwargs: Any) -> OperationResult:
        """
        Write a blob from a readable stream.

        Raises:
            InvalidStreamError: If stream is not an open, readable object
            BlobStorageError: If reading the stream fails
        """
        read = getattr(stream, "read", None)
        if not callable(read) or getattr(stream, "closed", False):
            raise InvalidStreamError()
        try:
            data = read()
        except (OSError, ValueError) as e:
            raise BlobStorageError(f"Failed to read stream: {e}") from e
        if data is None:
            raise InvalidStreamError("Stream returned no data (non-blocking stream?)")
        return self.write(path, data, **kwargs)

    # ----- reads -----

    def get(self, path: str) -> bytes:
        """
        Read a blob.

        Raises:
            BlobNotFoundError: If the blob does not exist
            ContainerNotFoundError: If the container does not exist
            TransportError: On network failure
        """
        validate_blob_path(path)
        return self.client.get_blob(path)

    read = get

    def get_text(self, path: str, encoding: str = "utf-8") -> str:
        return self.get(path).decode(encoding)

    def read_stream(self, path: str) -> BinaryIO:
        """Read a blob into a binary file object. Raises like get()."""
        return io.BytesIO(self.get(path))

    # ----- deletes, copies -----

    def delete(self, path: str, include_versions: bool = False) -> OperationResult:
        """
        Delete a blob.

        Args:
            path: Blob path
            include_versions: Also delete every archived version

        Returns:
            OperationResult; deleting a missing blob fails with
            BlobNotFoundError, unless include_versions is set and the path
            still has history to purge
        """
        validate_blob_path(path)
        try:
            try:
                self.client.delete_blob(path)
            except BlobNotFoundError:
                if not include_versions:
                    raise
                records = self.versions.history(path)
                if not records:
                    raise
                logger.debug("No live blob at %s, purging %d archived versions", path, len(records))
            else:
                records = self.versions.history(path) if include_versions else []
            for record in records:
                self.versions.delete(path, record.version_id)
        except BlobStorageError as e:
            logger.warning("Delete of %s failed: %s", path, e)
            return OperationResult.failure(e)
        return OperationResult.success()

    def copy(self, source: str, destination: str) -> OperationResult:
        """Server-side copy. The destination is replaced without archiving."""
        validate_blob_path(source)
        validate_blob_path(destination)
        try:
            self.client.copy_blob(source, destination)
        except BlobStorageError as e:
            logger.warning("Copy %s -> %s failed: %s", source, destination, e)
            return OperationResult.failure(e)
        return OperationResult.success()

    def move(self, source: str, destination: str) -> OperationResult:
        """Copy then delete the source. Version history stays with the source path."""
        copied = self.copy(source, destination)
        if not copied:
            return copied
        return self.delete(source)

    # ----- queries -----

    def exists(self, path: str) -> bool:
        validate_blob_path(path)
        try:
            return self.client.head_blob(path) is not None
        except BlobStorageError as e:
            logger.warning("Existence check for %s failed: %s", path, e)
            return False

    file_exists = exists

    def get_properties(self, path: str) -> Optional[BlobProperties]:
        """
        HEAD probe.

        Returns None when the blob is missing and also when the probe fails;
        the two are told apart only in the logs (DEBUG vs WARNING).
        """
        validate_blob_path(path)
        try:
            props = self.client.head_blob(path)
        except BlobStorageError as e:
            logger.warning("Property probe for %s failed: %s", path, e)
            return None
        if props is None:
            logger.debug("No blob at %s", path)
        return props

    def get_size(self, path: str) -> Optional[int]:
        props = self.get_properties(path)
        return props.size if props else None

    def get_mime_type(self, path: str) -> Optional[str]:
        props = self.get_properties(path)
        return props.content_type if props else None

    def get_metadata(self, path: str) -> Optional[Dict[str, str]]:
        props = self.get_properties(path)
        return props.metadata if props else None

    def set_metadata(self, path: str, metadata: Mapping[str, str]) -> OperationResult:
        """
        Replace a blob's custom metadata. Keys are stored lower-cased.

        Raises:
            ValueError: If a key is not a valid metadata name
        """
        validate_blob_path(path)
        metadata_to_headers(metadata)
        try:
            self.client.set_metadata(path, metadata)
        except BlobStorageError as e:
            logger.warning("Setting metadata on %s failed: %s", path, e)
            return OperationResult.failure(e)
        return OperationResult.success()

    def get_url(self, path: str) -> str:
        validate_blob_path(path)
        return self.client.url_for(path)

    def list(self, prefix: str = "") -> List[BlobInfo]:
        """
        List blobs under prefix.

        Entries in the reserved version namespace are never returned.
        Returns [] if the listing fails.
        """
        validate_prefix(prefix)
        try:
            entries = self.client.list_blobs(prefix=prefix)
        except BlobStorageError as e:
            logger.warning("Listing %s/%s failed: %s", self.container, prefix, e)
            return []
        return [entry for entry in entries if not is_reserved(entry.name)]

    # ----- container -----

    def create_container(self) -> OperationResult:
        try:
            self.client.create_container()
        except BlobStorageError as e:
            logger.warning("Creating container %s failed: %s", self.container, e)
            return OperationResult.failure(e)
        return OperationResult.success()

    def delete_container(self) -> OperationResult:
        try:
            self.client.delete_container()
        except BlobStorageError as e:
            logger.warning("Deleting container %s failed: %s", self.container, e)
            return OperationResult.failure(e)
        return OperationResult.success()

    def container_exists(self) -> bool:
        try:
            return self.client.container_exists()
        except BlobStorageError as e:
            logger.warning("Existence check for container %s failed: %s", self.container, e)
            return False

    # ----- versions -----

    def list_versions(self, path: str) -> List[VersionRecord]:
        """
        Every version of path, most recent first.

        The live blob appears first as version "current"; archived versions
        follow in strictly descending timestamp order. Returns [] if the
        listing fails.
        """
        validate_blob_path(path)
        try:
            records = self.versions.history(path)
            current = self.client.head_blob(path)
        except BlobStorageError as e:
            logger.warning("Listing versions of %s failed: %s", path, e)
            return []

        if current is not None:
            records.append(VersionRecord(
                version_id=CURRENT_VERSION,
                is_current=True,
                last_modified=current.last_modified,
                size=current.size,
                content_type=current.content_type,
            ))
        return order_versions(records)

    def _fetch_version(self, path: str, version_id: str):
        if version_id == CURRENT_VERSION:
            return self.client.download_blob(path)
        return self.versions.fetch(path, version_id)

    def get_version(self, path: str, version_id: str) -> bytes:
        """
        Content of one version. "current" reads the live blob.

        Raises:
            VersionNotFoundError: If the archived version does not exist
            BlobNotFoundError: If version_id is "current" and the blob is missing
        """
        validate_blob_path(path)
        return self._fetch_version(path, version_id)[0]

    def delete_version(self, path: str, version_id: str) -> OperationResult:
        """
        Delete one archived version.

        Fails (without touching anything) for "current" and for versions
        that do not exist.
        """
        validate_blob_path(path)
        try:
            self.versions.delete(path, version_id)
        except BlobStorageError as e:
            logger.warning("Deleting version %s of %s failed: %s", version_id, path, e)
            return OperationResult.failure(e)
        return OperationResult.success()

    def restore_version(self, path: str, version_id: str) -> OperationResult:
        """
        Make an old version current again.

        This copies the old body forward with an ordinary write, so the
        pre-restore content is archived as a new version and the restored
        version keeps its own id.
        """
        validate_blob_path(path)
        try:
            body, props = self._fetch_version(path, version_id)
        except BlobStorageError as e:
            logger.warning("Restoring %s of %s failed: %s", version_id, path, e)
            return OperationResult.failure(e)
        return self.write(
            path,
            body,
            content_type=props.content_type,
            metadata=props.metadata or None,
        )

    promote_version = restore_version
