"""Test the utility functions."""

import json
import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests
from pydantic import AnyUrl

from devour.errors import RetrievalError, SchemaError
from devour.models.notation import TransformSpec
from devour.utils.conformance import conform
from devour.utils.filesys import cache_path, fetch_uri, retrieve_document


def test_fetch_uri_http():
    """Test fetching a file from an HTTP URI."""
    with tempfile.TemporaryDirectory() as tempdir:
        local_path = Path(tempdir) / "testfile.txt"
        uri = "http://example.com/testfile.txt"
        content = b"Test content"

        with patch("requests.get") as mock_get:
            mock_get.return_value.content = content
            mock_get.return_value.status_code = 200

            # First fetch
            fetched_path = fetch_uri(uri, local_path)
            assert fetched_path == local_path
            assert local_path.exists()
            assert local_path.read_bytes() == content
            mock_get.assert_called_once_with(uri, timeout=60)

            # Fetch again with caching (should not call requests.get)
            mock_get.reset_mock()
            fetched_path = fetch_uri(uri, local_path)
            mock_get.assert_not_called()

            # Fetch again without caching
            fetched_path = fetch_uri(uri, local_path, use_cache=False, timeout=5)
            mock_get.assert_called_once_with(uri, timeout=5)


def test_fetch_uri_http_error_status():
    """Test an HTTP error status is raised and nothing is written."""
    with tempfile.TemporaryDirectory() as tempdir:
        local_path = Path(tempdir) / "testfile.txt"
        with patch("requests.get") as mock_get:
            mock_get.return_value.raise_for_status.side_effect = requests.HTTPError(
                "404 Client Error"
            )
            with pytest.raises(requests.HTTPError):
                fetch_uri("http://example.com/testfile.txt", local_path)
        assert not local_path.exists()


def test_fetch_uri_s3():
    """Test fetching a file from an S3 URI."""
    with tempfile.TemporaryDirectory() as tempdir:
        local_path = Path(tempdir) / "testfile.txt"
        uri = "s3://mybucket/testfile.txt"
        content = b"Test content"

        mock_s3_client = MagicMock()

        def mock_download_file(Bucket, Key, Filename):
            with open(Filename, "wb") as f:
                f.write(content)

        mock_s3_client.download_file.side_effect = mock_download_file

        # First fetch
        fetched_path = fetch_uri(uri, local_path, s3=mock_s3_client)
        assert fetched_path == local_path
        assert local_path.exists()
        assert local_path.read_bytes() == content
        mock_s3_client.download_file.assert_called_once_with(
            "mybucket", "testfile.txt", str(local_path)
        )

        # Fetch again with caching (should not call download_file)
        mock_s3_client.download_file.reset_mock()
        fetched_path = fetch_uri(uri, local_path, s3=mock_s3_client)
        mock_s3_client.download_file.assert_not_called()

        # Fetch again without caching
        fetched_path = fetch_uri(uri, local_path, use_cache=False, s3=mock_s3_client)
        mock_s3_client.download_file.assert_called_once_with(
            "mybucket", "testfile.txt", str(local_path)
        )


def test_fetch_uri_s3_creates_client_on_demand():
    """Test an S3 client is only created when none is given."""
    with tempfile.TemporaryDirectory() as tempdir:
        local_path = Path(tempdir) / "testfile.txt"
        with patch("devour.utils.filesys.boto3.client") as mock_boto3_client:
            fetch_uri("s3://mybucket/testfile.txt", local_path)
            mock_boto3_client.assert_called_once_with("s3")
            mock_boto3_client.return_value.download_file.assert_called_once_with(
                "mybucket", "testfile.txt", str(local_path)
            )


def test_fetch_uri_invalid_scheme():
    """Test fetching a file with an unsupported URI scheme."""
    with tempfile.TemporaryDirectory() as tempdir:
        local_path = Path(tempdir) / "testfile.txt"
        uri = "ftp://example.com/testfile.txt"
        with pytest.raises(NotImplementedError) as exc_info:
            fetch_uri(uri, local_path)
        assert str(exc_info.value) == "URI:SCHEME:ftp"


def test_fetch_uri_no_path_s3():
    """Test fetching an S3 URI with no path."""
    with tempfile.TemporaryDirectory() as tempdir:
        local_path = Path(tempdir) / "testfile.txt"
        uri = "s3://mybucket"
        with pytest.raises(ValueError, match="S3URI:NO_PATH"):
            fetch_uri(uri, local_path)


def test_retrieve_local_json(tmp_path):
    """Test reading a local json manifest."""
    path = tmp_path / "manifest.json"
    path.write_text(json.dumps({"assets": [1, 2]}))
    assert retrieve_document(str(path)) == {"assets": [1, 2]}


@pytest.mark.parametrize("suffix", [".yml", ".yaml", ".YML"])
def test_retrieve_local_yaml(tmp_path, suffix):
    """Test reading a local yaml manifest."""
    path = tmp_path / f"manifest{suffix}"
    path.write_text("assets:\n  - type: single\n")
    assert retrieve_document(str(path)) == {"assets": [{"type": "single"}]}


def test_retrieve_missing_file(tmp_path):
    """Test a missing file is a retrieval error naming the path."""
    path = tmp_path / "missing.json"
    with pytest.raises(RetrievalError, match="does not exist"):
        retrieve_document(str(path))


def test_retrieve_directory(tmp_path):
    """Test a directory is not a manifest."""
    with pytest.raises(RetrievalError, match="does not exist"):
        retrieve_document(str(tmp_path))


def test_retrieve_empty_locator():
    """Test an empty locator is rejected."""
    with pytest.raises(RetrievalError, match="Invalid source locator"):
        retrieve_document("")


def test_retrieve_malformed_json(tmp_path):
    """Test a document that does not parse is a retrieval error."""
    path = tmp_path / "manifest.json"
    path.write_text("{not json")
    with pytest.raises(RetrievalError, match="Failed to parse"):
        retrieve_document(str(path))


def test_retrieve_malformed_yaml(tmp_path):
    """Test a yaml document that does not parse is a retrieval error."""
    path = tmp_path / "manifest.yml"
    path.write_text("assets: [unclosed\n")
    with pytest.raises(RetrievalError, match="Failed to parse"):
        retrieve_document(str(path))


def test_retrieve_http(tmp_path):
    """Test remote manifests are downloaded into the cache and parsed."""
    with patch("requests.get") as mock_get:
        mock_get.return_value.content = b'{"assets": []}'
        document = retrieve_document(
            "https://example.com/manifests/main.json", cache_dir=tmp_path, timeout=3
        )
        mock_get.assert_called_once_with(
            "https://example.com/manifests/main.json", timeout=3
        )
    assert document == {"assets": []}
    assert (tmp_path / "example.com" / "manifests" / "main.json").exists()


def test_cache_path_keeps_query_distinct(tmp_path):
    """Test uris differing only by query are cached in different files."""
    first = cache_path(AnyUrl("https://h.example/get.json?id=1"), tmp_path)
    second = cache_path(AnyUrl("https://h.example/get.json?id=2"), tmp_path)
    assert first != second
    assert first.parent == second.parent == tmp_path / "h.example"
    assert first.suffix == second.suffix == ".json"
    assert cache_path(AnyUrl("https://h.example/get.json"), tmp_path) == (
        tmp_path / "h.example" / "get.json"
    )


def test_retrieve_cached_query_distinct_documents(tmp_path):
    """Test cached documents fetched from query-distinct urls are not shared."""
    bodies = {
        "https://h.example/get?id=1": b'{"assets": [1]}',
        "https://h.example/get?id=2": b'{"assets": [2]}',
    }

    def fake_get(url, timeout):
        response = MagicMock()
        response.content = bodies[url]
        return response

    with patch("requests.get", side_effect=fake_get) as mock_get:
        for _ in range(2):
            assert retrieve_document(
                "https://h.example/get?id=1", cache_dir=tmp_path, use_cache=True
            ) == {"assets": [1]}
            assert retrieve_document(
                "https://h.example/get?id=2", cache_dir=tmp_path, use_cache=True
            ) == {"assets": [2]}
        assert mock_get.call_count == 2


def test_retrieve_www_prefix(tmp_path):
    """Test www locators are fetched over https."""
    with patch("requests.get") as mock_get:
        mock_get.return_value.content = b"{}"
        retrieve_document("www.example.com/main.json", cache_dir=tmp_path)
        mock_get.assert_called_once_with("https://www.example.com/main.json", timeout=60)


def test_retrieve_http_failure(tmp_path):
    """Test transport failures are retrieval errors."""
    with patch("requests.get") as mock_get:
        mock_get.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(RetrievalError, match="Failed to fetch .*connection refused"):
            retrieve_document("http://example.com/main.json", cache_dir=tmp_path)


def test_conform_returns_validated_value():
    """Test conform converts a conforming value."""
    transform = conform({"rotation": "90"}, TransformSpec, "transform")
    assert transform.rotation == 90


def test_conform_describes_mismatch():
    """Test conform names the context and the failing fields."""
    with pytest.raises(SchemaError) as exc_info:
        conform({"xScale": -1, "zIndex": "high"}, TransformSpec, "Asset #0")
    message = str(exc_info.value)
    assert message.startswith("Asset #0: ")
    assert "xScale" in message
    assert "zIndex" in message


def test_conform_root_mismatch():
    """Test a mismatch at the root of the value is reported as such."""
    with pytest.raises(SchemaError, match="<root>"):
        conform("not a transform", TransformSpec, "transform")
