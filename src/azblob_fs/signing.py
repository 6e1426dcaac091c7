"""Shared-key request signing for the Blob service.

The service authenticates a request by recomputing an HMAC-SHA256 over a
canonical rendering of the request and comparing it with the signature in
the Authorization header. Any byte of difference in the canonical string
fails authentication, so the rendering rules here are exact:

    StringToSign = VERB + "\\n" +
                   Content-Encoding + "\\n" +
                   Content-Language + "\\n" +
                   Content-Length + "\\n" +     (empty when zero)
                   Content-MD5 + "\\n" +
                   Content-Type + "\\n" +
                   Date + "\\n" +
                   If-Modified-Since + "\\n" +
                   If-Match + "\\n" +
                   If-None-Match + "\\n" +
                   If-Unmodified-Since + "\\n" +
                   Range + "\\n" +
                   CanonicalizedHeaders + "\\n" +
                   CanonicalizedResource
"""

import base64
import binascii
import hashlib
import hmac
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional

from .constants import AUTH_SCHEME, CUSTOM_HEADER_PREFIX
from .errors import AuthenticationError

# Standard headers, in string-to-sign order (after the verb)
STANDARD_HEADER_FIELDS = (
    "content-encoding",
    "content-language",
    "content-length",
    "content-md5",
    "content-type",
    "date",
    "if-modified-since",
    "if-match",
    "if-none-match",
    "if-unmodified-since",
    "range",
)


def rfc1123_date(now: Optional[datetime] = None) -> str:
    """Format a timestamp for the x-ms-date header.

    Examples:
        datetime(2024, 1, 15, 10, 30, 45, tzinfo=utc) -> "Mon, 15 Jan 2024 10:30:45 GMT"
    """
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%a, %d %b %Y %H:%M:%S GMT")


def _lower_keys(headers: Mapping[str, str]) -> Dict[str, str]:
    return {k.lower(): str(v) for k, v in headers.items()}


def canonicalize_headers(headers: Mapping[str, str]) -> str:
    """
    Build the canonicalized x-ms-* header block.

    Args:
        headers: Request headers (any case)

    Returns:
        "name:value" lines sorted by lower-cased name, joined by newlines
    """
    custom = {
        name: value.strip()
        for name, value in _lower_keys(headers).items()
        if name.startswith(CUSTOM_HEADER_PREFIX)
    }
    return "\n".join(f"{name}:{custom[name]}" for name in sorted(custom))


def canonicalize_resource(
    account_name: str,
    resource_path: str,
    query: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Build the canonicalized resource string.

    Args:
        account_name: Storage account that owns the resource
        resource_path: URI-encoded path of the request URL (leading slash optional)
        query: Query parameters of the request

    Returns:
        "/account/path" followed by one "\\nkey:value" line per query
        parameter, sorted by lower-cased key
    """
    resource = f"/{account_name}/{resource_path.lstrip('/')}"
    if query:
        params = {str(k).lower(): str(v) for k, v in query.items()}
        for key in sorted(params):
            resource += f"\n{key}:{params[key]}"
    return resource


class SharedKeySigner:
    """
    Computes SharedKey signatures for one storage account.

    Pure: no clock, no I/O. Callers stamp x-ms-date themselves.
    """

    def __init__(self, account_name: str, account_key: str):
        """
        Initialize signer.

        Args:
            account_name: Storage account name
            account_key: Base64-encoded account key

        Raises:
            AuthenticationError: If the key is not valid base64
        """
        if not account_name:
            raise AuthenticationError("Account name is required for shared-key signing")
        try:
            self._key = base64.b64decode(account_key, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise AuthenticationError(f"Account key is not valid base64: {e}") from e
        if not self._key:
            raise AuthenticationError("Account key is empty")
        self.account_name = account_name

    def string_to_sign(
        self,
        method: str,
        resource_path: str,
        headers: Mapping[str, str],
        query: Optional[Mapping[str, str]] = None,
    ) -> str:
        """Render the canonical string for a request."""
        lowered = _lower_keys(headers)
        fields = [method.upper()]
        for name in STANDARD_HEADER_FIELDS:
            value = lowered.get(name, "")
            if name == "content-length" and value in ("0", ""):
                # The service signs an empty field, not "0", for empty bodies
                value = ""
            fields.append(value)
        fields.append(canonicalize_headers(headers))
        fields.append(canonicalize_resource(self.account_name, resource_path, query))
        return "\n".join(fields)

    def sign(
        self,
        method: str,
        resource_path: str,
        headers: Mapping[str, str],
        query: Optional[Mapping[str, str]] = None,
    ) -> str:
        """Return the base64 HMAC-SHA256 signature for a request."""
        payload = self.string_to_sign(method, resource_path, headers, query)
        digest = hmac.new(self._key, payload.encode("utf-8"), hashlib.sha256).digest()
        return base64.b64encode(digest).decode("ascii")

    def authorization_header(
        self,
        method: str,
        resource_path: str,
        headers: Mapping[str, str],
        query: Optional[Mapping[str, str]] = None,
    ) -> str:
        """Return the Authorization header value: "SharedKey account:signature"."""
        signature = self.sign(method, resource_path, headers, query)
        return f"{AUTH_SCHEME} {self.account_name}:{signature}"
