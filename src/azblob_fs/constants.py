"""Constants for azblob-fs."""

# Service protocol
SERVICE_VERSION = "2021-08-06"
CUSTOM_HEADER_PREFIX = "x-ms-"
META_HEADER_PREFIX = "x-ms-meta-"
AUTH_SCHEME = "SharedKey"

# Connection defaults
DEFAULT_PROTOCOL = "https"
DEFAULT_ENDPOINT_SUFFIX = "blob.core.windows.net"
CONNECTION_STRING_ENV = "AZURE_STORAGE_CONNECTION_STRING"
DEFAULT_TIMEOUT = 30.0

# Azurite well-known development account
DEV_ACCOUNT_NAME = "devstoreaccount1"
DEV_ACCOUNT_KEY = (
    "Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsu"
    "Fq2UVErCz4I6tq/K1SZFPTOtr/KBHBeksoGMGw=="
)
DEV_BLOB_ENDPOINT = "http://127.0.0.1:10000/devstoreaccount1"

# Versioning
VERSIONS_DIR = ".versions"
VERSIONS_PREFIX = VERSIONS_DIR + "/"
CURRENT_VERSION = "current"

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Client settings file
SETTINGS_DIR = ".azblob"
SETTINGS_FILE = "config.yaml"

# Version
PACKAGE_VERSION = "0.1.0"
