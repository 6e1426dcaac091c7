"""Custom exceptions for azblob-fs.

This module defines typed exceptions for the storage client so callers can
tell configuration, authentication, lookup and transport failures apart.
"""

from typing import Optional


class BlobStorageError(RuntimeError):
    """Base class for all azblob-fs errors."""
    pass


# Configuration Errors
class InvalidConnectionStringError(BlobStorageError):
    """Connection string is malformed or missing a required key."""
    pass


class AuthenticationError(BlobStorageError):
    """Credentials are malformed or the service rejected the signature (403)."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


# Caller Errors
class InvalidPathError(BlobStorageError, ValueError):
    """Blob path is empty, absolute, or addresses the reserved version namespace."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid blob path '{path}': {reason}")


class InvalidStreamError(BlobStorageError):
    """Object handed to a streaming write is not a readable stream."""

    def __init__(self, message: str = "Expected a readable binary stream"):
        super().__init__(message)


# Lookup Errors
class NotFoundError(BlobStorageError):
    """Base class for missing blobs, containers and versions."""
    pass


class BlobNotFoundError(NotFoundError):
    """Blob does not exist (404)."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Blob not found: {path}")


class ContainerNotFoundError(NotFoundError):
    """Container does not exist (404 ContainerNotFound)."""

    def __init__(self, container: str):
        self.container = container
        super().__init__(f"Container not found: {container}")


class VersionNotFoundError(NotFoundError):
    """Requested version of a blob does not exist."""

    def __init__(self, path: str, version_id: str):
        self.path = path
        self.version_id = version_id
        super().__init__(f"Version {version_id} not found for blob: {path}")


class BlobAlreadyExistsError(BlobStorageError):
    """Conditional write refused because the blob already exists (409)."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Blob already exists: {path}")


class ProtectedVersionError(BlobStorageError):
    """Operation is not allowed on this version (e.g. deleting 'current')."""

    def __init__(self, path: str, version_id: str):
        self.path = path
        self.version_id = version_id
        super().__init__(
            f"Version '{version_id}' of {path} cannot be deleted here. "
            f"Delete the blob itself to remove the current version."
        )


# Transport Errors
class TransportError(BlobStorageError):
    """Network failure or timeout talking to the storage endpoint."""
    pass


class ServiceError(BlobStorageError):
    """Storage service returned an unexpected error status."""

    def __init__(self, status: int, code: Optional[str] = None, message: str = ""):
        self.status = status
        self.code = code
        detail = f" ({code})" if code else ""
        super().__init__(message or f"Storage service returned HTTP {status}{detail}")
