"""Client-side version history for backends without native blob versioning.

Before a blob is overwritten, its current body is server-side copied to

    .versions/<path>/<unix_timestamp>

The version store owns that namespace: it mints shadow paths, lists them,
reads and deletes them. Nothing here is transactional. Two writers racing on
the same path can archive an intermediate state; there is no ETag check
between the snapshot and the overwrite.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Tuple

from .client import BlobClient
from .constants import CURRENT_VERSION
from .errors import BlobNotFoundError, ProtectedVersionError, VersionNotFoundError
from .models import BlobProperties, VersionRecord
from .paths import is_version_id, parse_version_id, shadow_path, shadow_prefix

logger = logging.getLogger(__name__)


def order_versions(records: Iterable[VersionRecord]) -> List[VersionRecord]:
    """
    Most recent first.

    The current version always sorts first. It has no archive timestamp of
    its own, and it is by definition newer than anything it replaced.
    Historical versions follow in strictly descending numeric order.
    """
    return sorted(
        records,
        key=lambda r: (0, 0) if r.is_current else (1, -int(r.version_id)),
    )


class VersionStore:
    """Shadow namespace holding prior bodies of primary blobs."""

    def __init__(self, client: BlobClient, clock: Callable[[], float] = time.time):
        """
        Initialize version store.

        Args:
            client: Client for the container holding both namespaces
            clock: Source of archive timestamps (Unix seconds)
        """
        self.client = client
        self.clock = clock

    def _mint_timestamp(self, path: str) -> int:
        # Two overwrites within the same second would otherwise share an id
        ts = int(self.clock())
        while self.client.head_blob(shadow_path(path, ts)) is not None:
            ts += 1
        return ts

    def snapshot(self, path: str) -> str:
        """
        Archive the current body of path.

        Args:
            path: Primary blob path (must exist)

        Returns:
            Version id of the new shadow copy

        Raises:
            BlobNotFoundError: If path does not exist
            TransportError: On network failure
        """
        ts = self._mint_timestamp(path)
        self.client.copy_blob(path, shadow_path(path, ts))
        logger.debug("Archived %s as version %d", path, ts)
        return str(ts)

    def history(self, path: str) -> List[VersionRecord]:
        """
        Archived versions of path, unordered.

        The listing is scoped to the path's shadow prefix; entries belonging
        to deeper paths (versions of "path/child") are skipped.
        """
        records = []
        for entry in self.client.list_blobs(prefix=shadow_prefix(path)):
            version_id = parse_version_id(path, entry.name)
            if version_id is None:
                continue
            records.append(VersionRecord(
                version_id=version_id,
                is_current=False,
                last_modified=datetime.fromtimestamp(int(version_id), tz=timezone.utc),
                size=entry.size,
                content_type=entry.content_type,
            ))
        return records

    def _require_historical(self, path: str, version_id: str) -> str:
        if not is_version_id(version_id):
            raise VersionNotFoundError(path, version_id)
        return f"{shadow_prefix(path)}{version_id}"

    def fetch(self, path: str, version_id: str) -> Tuple[bytes, BlobProperties]:
        """
        Body and properties of an archived version.

        Raises:
            VersionNotFoundError: If no such version exists
        """
        try:
            return self.client.download_blob(self._require_historical(path, version_id))
        except BlobNotFoundError as e:
            raise VersionNotFoundError(path, version_id) from e

    def read(self, path: str, version_id: str) -> bytes:
        """Body of an archived version."""
        return self.fetch(path, version_id)[0]

    def delete(self, path: str, version_id: str) -> None:
        """
        Remove an archived version.

        Raises:
            ProtectedVersionError: If version_id is "current"
            VersionNotFoundError: If no such version exists
        """
        if version_id == CURRENT_VERSION:
            raise ProtectedVersionError(path, version_id)
        try:
            self.client.delete_blob(self._require_historical(path, version_id))
        except BlobNotFoundError as e:
            raise VersionNotFoundError(path, version_id) from e
        logger.debug("Deleted version %s of %s", version_id, path)
