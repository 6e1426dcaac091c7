"""Tests for listing and metadata translation."""

from datetime import datetime, timezone

import pytest

from azblob_fs.errors import ServiceError
from azblob_fs.listing import (
    metadata_from_headers,
    metadata_to_headers,
    parse_blob_list,
    parse_http_date,
    properties_from_headers,
)

LISTING = b"""<?xml version="1.0" encoding="utf-8"?>
<EnumerationResults ServiceEndpoint="https://myaccount.blob.core.windows.net/" ContainerName="docs">
  <Prefix>reports/</Prefix>
  <Blobs>
    <Blob>
      <Name>reports/q1.csv</Name>
      <Properties>
        <Last-Modified>Mon, 15 Jan 2024 10:30:45 GMT</Last-Modified>
        <Etag>0x8DC15A</Etag>
        <Content-Length>2048</Content-Length>
        <Content-Type>text/csv</Content-Type>
        <BlobType>BlockBlob</BlobType>
      </Properties>
    </Blob>
    <Blob>
      <Name>reports/empty</Name>
      <Properties>
        <Content-Length>0</Content-Length>
        <Content-Type />
      </Properties>
    </Blob>
  </Blobs>
  <NextMarker>reports/q2.csv</NextMarker>
</EnumerationResults>"""


class TestParseBlobList:
    """Test EnumerationResults parsing."""

    def test_entries(self):
        entries, _ = parse_blob_list(LISTING)
        assert [e.name for e in entries] == ["reports/q1.csv", "reports/empty"]

        first = entries[0]
        assert first.size == 2048
        assert first.content_type == "text/csv"
        assert first.etag == "0x8DC15A"
        assert first.last_modified == datetime(2024, 1, 15, 10, 30, 45, tzinfo=timezone.utc)

    def test_defaults_for_missing_properties(self):
        entries, _ = parse_blob_list(LISTING)
        empty = entries[1]
        assert empty.size == 0
        assert empty.content_type == "application/octet-stream"
        assert empty.last_modified is None

    def test_next_marker(self):
        _, marker = parse_blob_list(LISTING)
        assert marker == "reports/q2.csv"

    def test_last_page(self):
        body = b"<EnumerationResults><Blobs /><NextMarker /></EnumerationResults>"
        entries, marker = parse_blob_list(body)
        assert entries == []
        assert marker is None

    def test_malformed(self):
        with pytest.raises(ServiceError, match="Malformed"):
            parse_blob_list(b"<EnumerationResults><Blobs>")


class TestMetadata:
    """Test x-ms-meta-* translation."""

    def test_from_headers_strips_prefix_and_lowercases(self):
        headers = {
            "x-ms-meta-Author": "Ada",
            "X-MS-META-project": "engine",
            "Content-Type": "text/plain",
            "x-ms-version": "2021-08-06",
        }
        assert metadata_from_headers(headers) == {"author": "Ada", "project": "engine"}

    def test_to_headers(self):
        assert metadata_to_headers({"Author": "Ada", "rev": 3}) == {
            "x-ms-meta-author": "Ada",
            "x-ms-meta-rev": "3",
        }

    @pytest.mark.parametrize("key", ["", "has space", "colon:key"])
    def test_invalid_keys(self, key):
        with pytest.raises(ValueError):
            metadata_to_headers({key: "v"})


class TestProperties:
    """Test HEAD header translation."""

    def test_properties(self):
        props = properties_from_headers({
            "Content-Length": "11",
            "Content-Type": "text/plain",
            "Last-Modified": "Mon, 15 Jan 2024 10:30:45 GMT",
            "ETag": '"0x1"',
            "x-ms-meta-owner": "ada",
        })
        assert props.size == 11
        assert props.content_type == "text/plain"
        assert props.etag == '"0x1"'
        assert props.metadata == {"owner": "ada"}
        assert props.last_modified.year == 2024

    def test_bad_date(self):
        assert parse_http_date("yesterday") is None
        assert parse_http_date(None) is None
