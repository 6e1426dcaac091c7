"""Connection string resolution and client settings."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field

from .constants import (
    CONNECTION_STRING_ENV,
    DEFAULT_ENDPOINT_SUFFIX,
    DEFAULT_PROTOCOL,
    DEFAULT_TIMEOUT,
    DEV_ACCOUNT_KEY,
    DEV_ACCOUNT_NAME,
    DEV_BLOB_ENDPOINT,
    SETTINGS_DIR,
    SETTINGS_FILE,
)
from .errors import InvalidConnectionStringError


class StorageCredentials(BaseModel):
    """Account identity and endpoint resolved from a connection string.

    Attributes:
        account_name: Storage account name
        account_key: Base64-encoded shared key
        blob_endpoint: Blob service base URL, without trailing slash
        protocol: "https" or "http"
    """
    account_name: str
    account_key: str = Field(repr=False)
    blob_endpoint: str
    protocol: str = DEFAULT_PROTOCOL

    model_config = {"frozen": True}


def _split_segments(connection_string: str) -> Dict[str, str]:
    parts: Dict[str, str] = {}
    for segment in connection_string.split(";"):
        if not segment.strip():
            continue
        if "=" not in segment:
            raise InvalidConnectionStringError(
                f"Malformed connection string segment (expected Key=Value): {segment.strip()!r}"
            )
        key, value = segment.split("=", 1)
        parts[key.strip()] = value.strip()
    return parts


def parse_connection_string(connection_string: str) -> StorageCredentials:
    """
    Parse an Azure Storage connection string.

    Args:
        connection_string: Semicolon-delimited Key=Value pairs

    Returns:
        Resolved StorageCredentials

    Raises:
        InvalidConnectionStringError: If the string is malformed or
            AccountName/AccountKey is missing
    """
    if not connection_string or not connection_string.strip():
        raise InvalidConnectionStringError("Connection string is empty")

    parts = _split_segments(connection_string)

    if parts.get("UseDevelopmentStorage", "").lower() == "true":
        return StorageCredentials(
            account_name=DEV_ACCOUNT_NAME,
            account_key=DEV_ACCOUNT_KEY,
            blob_endpoint=DEV_BLOB_ENDPOINT,
            protocol="http",
        )

    account_name = parts.get("AccountName")
    if not account_name:
        raise InvalidConnectionStringError("AccountName is required in connection string")
    account_key = parts.get("AccountKey")
    if not account_key:
        raise InvalidConnectionStringError("AccountKey is required in connection string")

    protocol = parts.get("DefaultEndpointsProtocol") or DEFAULT_PROTOCOL
    blob_endpoint = parts.get("BlobEndpoint") or (
        f"{protocol}://{account_name}.{DEFAULT_ENDPOINT_SUFFIX}"
    )

    return StorageCredentials(
        account_name=account_name,
        account_key=account_key,
        blob_endpoint=blob_endpoint.rstrip("/"),
        protocol=protocol,
    )


def credentials_from_env() -> StorageCredentials:
    """Resolve credentials from AZURE_STORAGE_CONNECTION_STRING.

    Raises:
        InvalidConnectionStringError: If the variable is unset or invalid
    """
    connection_string = os.environ.get(CONNECTION_STRING_ENV)
    if not connection_string:
        raise InvalidConnectionStringError(
            f"Set {CONNECTION_STRING_ENV} to an Azure Storage connection string"
        )
    return parse_connection_string(connection_string)


@dataclass
class ClientSettings:
    """Per-project client settings."""

    container: str = ""
    timeout: float = DEFAULT_TIMEOUT
    versioning: bool = True


def load_client_settings(path: Optional[Path] = None) -> ClientSettings:
    """Load client settings from .azblob/config.yaml if present."""

    cfg_path = path or Path.cwd() / SETTINGS_DIR / SETTINGS_FILE
    if not cfg_path.exists():
        return ClientSettings()

    try:
        data = yaml.safe_load(cfg_path.read_text()) or {}
    except (OSError, yaml.YAMLError):
        return ClientSettings()

    if not isinstance(data, dict):
        return ClientSettings()

    client = data.get("client", data)
    return ClientSettings(
        container=str(client.get("container", "")),
        timeout=float(client.get("timeout", DEFAULT_TIMEOUT)),
        versioning=bool(client.get("versioning", True)),
    )
