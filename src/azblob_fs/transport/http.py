"""HTTP transport backed by requests with shared-key signing."""

import logging
import urllib.parse
from typing import Mapping, Optional

import requests

from ..config import StorageCredentials
from ..constants import DEFAULT_TIMEOUT, SERVICE_VERSION
from ..errors import TransportError
from ..signing import SharedKeySigner, rfc1123_date
from .base import TransportResponse

logger = logging.getLogger(__name__)


class HttpTransport:
    """
    Sends signed requests to a Blob service endpoint.

    Every request carries x-ms-date and x-ms-version and is signed with the
    account key. Each call is bounded by its own timeout; nothing is retried.
    """

    def __init__(
        self,
        credentials: StorageCredentials,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize HTTP transport.

        Args:
            credentials: Resolved account credentials
            timeout: Per-request deadline in seconds
            session: Optional preconfigured session (proxies, adapters)

        Raises:
            AuthenticationError: If the account key is malformed
        """
        self.credentials = credentials
        self.timeout = timeout
        self.signer = SharedKeySigner(credentials.account_name, credentials.account_key)
        self.session = session or requests.Session()

    def url_for(self, path: str) -> str:
        """Absolute, URL-encoded URL for an endpoint-relative path."""
        return f"{self.credentials.blob_endpoint}/{urllib.parse.quote(path, safe='/')}"

    def request(
        self,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        query: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
    ) -> TransportResponse:
        url = self.url_for(path)
        query = dict(query or {})

        request_headers = {
            "x-ms-date": rfc1123_date(),
            "x-ms-version": SERVICE_VERSION,
        }
        request_headers.update(headers or {})
        if body:
            request_headers["Content-Length"] = str(len(body))

        # Sign over the path exactly as it appears on the wire
        resource_path = urllib.parse.urlparse(url).path
        request_headers["Authorization"] = self.signer.authorization_header(
            method, resource_path, request_headers, query
        )

        logger.debug("%s %s %s", method, url, query or "")
        try:
            resp = self.session.request(
                method,
                url,
                headers=request_headers,
                params=query or None,
                data=body or None,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"{method} {url} timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        logger.debug("%s %s -> %d", method, url, resp.status_code)
        return TransportResponse(
            status=resp.status_code,
            headers=resp.headers,
            body=resp.content if method != "HEAD" else b"",
        )

    def close(self) -> None:
        self.session.close()
