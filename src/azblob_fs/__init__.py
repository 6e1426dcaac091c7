"""azblob-fs: file-like access to Azure Blob Storage with client-side versioning."""

from .config import StorageCredentials, credentials_from_env, parse_connection_string
from .constants import CURRENT_VERSION, PACKAGE_VERSION
from .errors import (
    AuthenticationError,
    BlobAlreadyExistsError,
    BlobNotFoundError,
    BlobStorageError,
    ContainerNotFoundError,
    InvalidConnectionStringError,
    InvalidPathError,
    InvalidStreamError,
    NotFoundError,
    ProtectedVersionError,
    ServiceError,
    TransportError,
    VersionNotFoundError,
)
from .filesystem import BlobFileSystem
from .models import BlobInfo, BlobProperties, VersionRecord
from .results import OperationResult
from .signing import SharedKeySigner

__version__ = PACKAGE_VERSION

__all__ = [
    "AuthenticationError",
    "BlobAlreadyExistsError",
    "BlobFileSystem",
    "BlobInfo",
    "BlobNotFoundError",
    "BlobProperties",
    "BlobStorageError",
    "ContainerNotFoundError",
    "CURRENT_VERSION",
    "InvalidConnectionStringError",
    "InvalidPathError",
    "InvalidStreamError",
    "NotFoundError",
    "OperationResult",
    "ProtectedVersionError",
    "ServiceError",
    "SharedKeySigner",
    "StorageCredentials",
    "TransportError",
    "VersionNotFoundError",
    "VersionRecord",
    "credentials_from_env",
    "parse_connection_string",
]
