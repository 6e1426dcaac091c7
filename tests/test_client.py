"""Tests for status-to-error mapping and request shapes in BlobClient."""

from unittest.mock import MagicMock

import pytest

from azblob_fs.client import BlobClient
from azblob_fs.errors import (
    AuthenticationError,
    BlobAlreadyExistsError,
    BlobNotFoundError,
    ContainerNotFoundError,
    ServiceError,
)
from azblob_fs.transport import TransportResponse

ENDPOINT = "https://myaccount.blob.core.windows.net"


def _client(*responses):
    transport = MagicMock()
    transport.request.side_effect = list(responses)
    return BlobClient(transport, "docs", ENDPOINT), transport


class TestErrorMapping:
    """Test typed errors for failed responses."""

    def test_blob_not_found(self):
        client, _ = _client(TransportResponse(404, {"x-ms-error-code": "BlobNotFound"}))
        with pytest.raises(BlobNotFoundError) as exc:
            client.get_blob("a.txt")
        assert exc.value.path == "a.txt"

    def test_container_not_found(self):
        client, _ = _client(TransportResponse(404, {"x-ms-error-code": "ContainerNotFound"}))
        with pytest.raises(ContainerNotFoundError) as exc:
            client.get_blob("a.txt")
        assert exc.value.container == "docs"

    def test_forbidden(self):
        client, _ = _client(TransportResponse(403, {"x-ms-error-code": "AuthenticationFailed"}))
        with pytest.raises(AuthenticationError, match="AuthenticationFailed"):
            client.get_blob("a.txt")

    def test_already_exists(self):
        client, _ = _client(TransportResponse(409, {"x-ms-error-code": "BlobAlreadyExists"}))
        with pytest.raises(BlobAlreadyExistsError):
            client.put_blob("a.txt", b"x", overwrite=False)

    def test_other_status(self):
        client, _ = _client(TransportResponse(503, {"x-ms-error-code": "ServerBusy"}))
        with pytest.raises(ServiceError) as exc:
            client.get_blob("a.txt")
        assert exc.value.status == 503
        assert exc.value.code == "ServerBusy"

    def test_head_missing_is_none(self):
        client, _ = _client(TransportResponse(404))
        assert client.head_blob("a.txt") is None

    def test_head_server_error_raises(self):
        client, _ = _client(TransportResponse(500))
        with pytest.raises(ServiceError):
            client.head_blob("a.txt")

    def test_copy_missing_source(self):
        client, _ = _client(TransportResponse(404, {"x-ms-error-code": "CannotVerifyCopySource"}))
        with pytest.raises(BlobNotFoundError) as exc:
            client.copy_blob("src.txt", "dst.txt")
        assert exc.value.path == "src.txt"


class TestRequestShapes:
    """Test verb and query mapping."""

    def test_put_blob(self):
        client, transport = _client(TransportResponse(201, {"ETag": '"0x1"'}))
        etag = client.put_blob("dir/a.txt", b"hi", content_type="text/plain",
                               metadata={"Owner": "ada"}, overwrite=False)
        assert etag == '"0x1"'
        method, path = transport.request.call_args.args
        headers = transport.request.call_args.kwargs["headers"]
        assert (method, path) == ("PUT", "docs/dir/a.txt")
        assert headers["x-ms-blob-type"] == "BlockBlob"
        assert headers["Content-Type"] == "text/plain"
        assert headers["x-ms-meta-owner"] == "ada"
        assert headers["If-None-Match"] == "*"
        assert transport.request.call_args.kwargs["body"] == b"hi"

    def test_copy_sends_full_source_url(self):
        client, transport = _client(TransportResponse(202))
        client.copy_blob("dir/my file.txt", ".versions/dir/my file.txt/1700000000")
        headers = transport.request.call_args.kwargs["headers"]
        assert headers["x-ms-copy-source"] == f"{ENDPOINT}/docs/dir/my%20file.txt"

    def test_set_metadata(self):
        client, transport = _client(TransportResponse(200))
        client.set_metadata("a.txt", {"k": "v"})
        assert transport.request.call_args.kwargs["query"] == {"comp": "metadata"}
        assert transport.request.call_args.kwargs["headers"] == {"x-ms-meta-k": "v"}

    def test_container_ops(self):
        client, transport = _client(TransportResponse(201), TransportResponse(200), TransportResponse(404))
        client.create_container()
        assert client.container_exists() is True
        assert client.container_exists() is False
        for call in transport.request.call_args_list:
            assert call.args[1] == "docs"
            assert call.kwargs["query"] == {"restype": "container"}

    def test_list_follows_markers(self):
        page1 = (b"<EnumerationResults><Blobs><Blob><Name>a</Name></Blob></Blobs>"
                 b"<NextMarker>b</NextMarker></EnumerationResults>")
        page2 = (b"<EnumerationResults><Blobs><Blob><Name>b</Name></Blob></Blobs>"
                 b"<NextMarker /></EnumerationResults>")
        client, transport = _client(TransportResponse(200, body=page1), TransportResponse(200, body=page2))

        entries = client.list_blobs(prefix="x")
        assert [e.name for e in entries] == ["a", "b"]

        first, second = [c.kwargs["query"] for c in transport.request.call_args_list]
        assert first == {"restype": "container", "comp": "list", "prefix": "x"}
        assert second["marker"] == "b"

    def test_url_for(self):
        client, _ = _client()
        assert client.url_for("a b/c.txt") == f"{ENDPOINT}/docs/a%20b/c.txt"

    def test_container_required(self):
        with pytest.raises(ValueError):
            BlobClient(MagicMock(), "", ENDPOINT)
