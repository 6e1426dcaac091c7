"""Translation of service listing and HEAD responses into domain records."""

import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, List, Mapping, Optional, Tuple

from .constants import DEFAULT_CONTENT_TYPE, META_HEADER_PREFIX
from .errors import ServiceError
from .models import BlobInfo, BlobProperties

logger = logging.getLogger(__name__)


def parse_http_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 1123 date ("Mon, 15 Jan 2024 10:30:45 GMT") to aware UTC."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug("Unparseable date header: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _int_or_zero(value: Optional[str]) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


def parse_blob_list(xml_body: bytes) -> Tuple[List[BlobInfo], Optional[str]]:
    """
    Parse a List Blobs enumeration response.

    Args:
        xml_body: Raw EnumerationResults document

    Returns:
        Tuple of (entries, next_marker); next_marker is None on the last page

    Raises:
        ServiceError: If the body is not a well-formed enumeration
    """
    try:
        root = ET.fromstring(xml_body)
    except ET.ParseError as e:
        raise ServiceError(200, "InvalidXml", f"Malformed listing response: {e}") from e

    entries = []
    for blob in root.iterfind("./Blobs/Blob"):
        name = blob.findtext("Name")
        if name is None:
            continue
        props = blob.find("Properties")
        if props is None:
            entries.append(BlobInfo(name=name))
            continue
        entries.append(BlobInfo(
            name=name,
            size=_int_or_zero(props.findtext("Content-Length")),
            last_modified=parse_http_date(props.findtext("Last-Modified")),
            content_type=props.findtext("Content-Type") or DEFAULT_CONTENT_TYPE,
            etag=props.findtext("Etag"),
        ))

    next_marker = (root.findtext("NextMarker") or "").strip() or None
    return entries, next_marker


def metadata_from_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Strip the x-ms-meta- prefix and lower-case the remaining key."""
    metadata = {}
    for name, value in headers.items():
        lowered = name.lower()
        if lowered.startswith(META_HEADER_PREFIX):
            metadata[lowered[len(META_HEADER_PREFIX):]] = value
    return metadata


def metadata_to_headers(metadata: Mapping[str, str]) -> Dict[str, str]:
    """
    Render a metadata mapping as x-ms-meta-* request headers.

    Raises:
        ValueError: If a key is empty or contains characters that are not
            valid in a header name
    """
    headers = {}
    for key, value in metadata.items():
        key = str(key).strip().lower()
        if not key or not all(c.isalnum() or c in "-_" for c in key):
            raise ValueError(f"Invalid metadata key: {key!r}")
        headers[f"{META_HEADER_PREFIX}{key}"] = str(value)
    return headers


def properties_from_headers(headers: Mapping[str, str]) -> BlobProperties:
    """Build BlobProperties from HEAD response headers (any case)."""
    lowered = {k.lower(): v for k, v in headers.items()}
    return BlobProperties(
        size=_int_or_zero(lowered.get("content-length")),
        content_type=lowered.get("content-type") or DEFAULT_CONTENT_TYPE,
        last_modified=parse_http_date(lowered.get("last-modified")),
        etag=lowered.get("etag"),
        metadata=metadata_from_headers(headers),
    )
