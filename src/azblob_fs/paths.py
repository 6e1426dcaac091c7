"""Blob path validation and shadow-path layout.

Historical versions live in a reserved sub-namespace of the container:

    .versions/<path>/<unix_timestamp>

Primary paths must never address that namespace, otherwise a caller could
overwrite or list version history through the ordinary file operations.
"""

import re
from typing import Optional

from .constants import VERSIONS_DIR, VERSIONS_PREFIX
from .errors import InvalidPathError


def is_reserved(path: str) -> bool:
    """Check if a path lies inside the reserved version namespace."""
    return path == VERSIONS_DIR or path.startswith(VERSIONS_PREFIX)


def validate_blob_path(path: str) -> str:
    """
    Guard for every primary-path entry point.

    Args:
        path: Caller-supplied blob path

    Returns:
        The path, unchanged

    Raises:
        InvalidPathError: If the path is empty, absolute, has empty or
            dot segments, or addresses the reserved version namespace
    """
    if not isinstance(path, str) or not path:
        raise InvalidPathError(str(path), "path must be a non-empty string")
    if is_reserved(path):
        raise InvalidPathError(path, f"'{VERSIONS_PREFIX}' is reserved for version history")
    if path.startswith("/"):
        raise InvalidPathError(path, "path must not start with '/'")
    segments = path.split("/")
    if "" in segments:
        raise InvalidPathError(path, "path must not contain empty segments")
    # HTTP clients collapse "." and ".." before sending, which would move
    # the request to a different blob than the one validated and signed
    if "." in segments or ".." in segments:
        raise InvalidPathError(path, "path must not contain '.' or '..' segments")
    return path


def validate_prefix(prefix: str) -> str:
    """Guard for listing prefixes. Empty is allowed; reserved is not."""
    if prefix.startswith("/"):
        raise InvalidPathError(prefix, "prefix must not start with '/'")
    if prefix and is_reserved(prefix):
        raise InvalidPathError(prefix, f"'{VERSIONS_PREFIX}' is reserved for version history")
    return prefix


def shadow_prefix(path: str) -> str:
    """Listing prefix holding every archived version of path."""
    return f"{VERSIONS_PREFIX}{path}/"


def shadow_path(path: str, timestamp: int) -> str:
    """Address of the version of path archived at timestamp."""
    return f"{shadow_prefix(path)}{int(timestamp)}"


def parse_version_id(path: str, name: str) -> Optional[str]:
    """
    Extract the version id from a shadow object name.

    Only direct children of the path's shadow prefix count. For path
    "a", ".versions/a/123" yields "123" but ".versions/a/123/456" (a
    version of the blob "a/123") yields None.

    Args:
        path: Primary blob path
        name: Object name returned by a prefix-scoped listing

    Returns:
        Version id string, or None if name is not a version of path
    """
    match = re.fullmatch(re.escape(shadow_prefix(path)) + r"(\d+)", name)
    return match.group(1) if match else None


def is_version_id(version_id: str) -> bool:
    """Historical version ids are decimal Unix timestamps."""
    return bool(version_id) and version_id.isascii() and version_id.isdigit()
