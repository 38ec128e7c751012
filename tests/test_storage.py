"""Tests for the S3 storage client."""

import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from pyoffload.exceptions import OffloadConfigError, OffloadListError, OffloadStorageError
from pyoffload.storage import S3StorageClient, friendly_error_message


def _client_error(code, status, operation="HeadObject"):
    return ClientError(
        {
            "Error": {"Code": code, "Message": code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


@pytest.fixture
def mock_config():
    """Mock the config module with no optional settings."""
    with patch("pyoffload.storage.config") as mock:
        mock.access_key = None
        mock.secret_key = None
        mock.bucket = None
        mock.endpoint = None
        mock.cdn_url = None
        mock.region = "eu-central-1"
        mock.prefix = "uploads/"
        mock.timeout = 30.0
        yield mock


@pytest.fixture
def mock_boto3():
    """Mock boto3 so no client is created."""
    with patch("pyoffload.storage.boto3") as mock:
        mock.client.return_value = Mock()
        yield mock


@pytest.fixture
def storage(mock_config, mock_boto3):
    """Create a storage client with explicit settings."""
    return S3StorageClient(
        access_key="AKIA",
        secret_key="secret",
        bucket="media",
        endpoint="fsn1.your-objectstorage.com",
    )


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestInit:
    """Tests for client construction."""

    def test_missing_settings_raise(self, mock_config):
        with pytest.raises(OffloadConfigError, match="access key, secret key"):
            S3StorageClient(bucket="media", endpoint="example.com")

    def test_defaults(self, storage):
        assert storage.prefix == "uploads/"
        assert storage.region == "eu-central-1"
        assert storage.acl == "public-read"
        assert storage.endpoint_url == "https://fsn1.your-objectstorage.com"

    def test_endpoint_with_scheme(self, mock_config):
        client = S3StorageClient(
            access_key="a", secret_key="b", bucket="c", endpoint="http://localhost:9000/"
        )
        assert client.endpoint_url == "http://localhost:9000/"
        assert client.endpoint_host == "localhost:9000"

    def test_get_client_uses_path_style(self, storage, mock_boto3):
        storage.get_client()
        storage.get_client()

        mock_boto3.client.assert_called_once()
        kwargs = mock_boto3.client.call_args.kwargs
        assert kwargs["endpoint_url"] == "https://fsn1.your-objectstorage.com"
        assert kwargs["region_name"] == "eu-central-1"
        assert kwargs["config"].s3 == {"addressing_style": "path"}


class TestPut:
    """Tests for put."""

    def test_upload_sets_acl_and_content_type(self, storage, temp_dir):
        local = temp_dir / "a.jpg"
        local.write_bytes(b"jpeg")

        assert storage.put(local, "uploads/a.jpg") is True

        storage.get_client().upload_file.assert_called_once_with(
            str(local),
            "media",
            "uploads/a.jpg",
            ExtraArgs={"ACL": "public-read", "ContentType": "image/jpeg"},
        )

    def test_missing_local_file(self, storage, temp_dir):
        assert storage.put(temp_dir / "missing.jpg", "uploads/missing.jpg") is False
        storage.get_client().upload_file.assert_not_called()

    def test_upload_failure_returns_false(self, storage, temp_dir):
        local = temp_dir / "a.jpg"
        local.write_bytes(b"jpeg")
        storage.get_client().upload_file.side_effect = _client_error(
            "AccessDenied", 403, "PutObject"
        )

        assert storage.put(local, "uploads/a.jpg") is False


class TestExistsAndDelete:
    """Tests for exists and delete."""

    def test_exists(self, storage):
        assert storage.exists("uploads/a.jpg") is True

    def test_not_found(self, storage):
        storage.get_client().head_object.side_effect = _client_error("404", 404)
        assert storage.exists("uploads/a.jpg") is False

    def test_other_error_reported_absent(self, storage):
        storage.get_client().head_object.side_effect = _client_error("AccessDenied", 403)
        assert storage.exists("uploads/a.jpg") is False

    def test_transport_error_reported_absent(self, storage):
        storage.get_client().head_object.side_effect = EndpointConnectionError(
            endpoint_url="https://example.com"
        )
        assert storage.exists("uploads/a.jpg") is False

    def test_delete(self, storage):
        assert storage.delete("uploads/a.jpg") is True
        storage.get_client().delete_object.assert_called_once_with(
            Bucket="media", Key="uploads/a.jpg"
        )

    def test_delete_failure(self, storage):
        storage.get_client().delete_object.side_effect = _client_error(
            "AccessDenied", 403, "DeleteObject"
        )
        assert storage.delete("uploads/a.jpg") is False


class TestListKeys:
    """Tests for list_keys."""

    def test_follows_all_pages(self, storage):
        paginator = storage.get_client().get_paginator.return_value
        paginator.paginate.return_value = [
            {"Contents": [{"Key": "uploads/a.jpg"}, {"Key": "uploads/b.jpg"}]},
            {"Contents": [{"Key": "uploads/c.jpg"}]},
            {},
        ]

        keys = storage.list_keys()

        paginator.paginate.assert_called_once_with(Bucket="media", Prefix="uploads/")
        assert keys == {"uploads/a.jpg", "uploads/b.jpg", "uploads/c.jpg"}

    def test_empty_bucket(self, storage):
        paginator = storage.get_client().get_paginator.return_value
        paginator.paginate.return_value = [{"KeyCount": 0}]
        assert storage.list_keys("other/") == set()

    def test_failure_raises_list_error(self, storage):
        paginator = storage.get_client().get_paginator.return_value
        paginator.paginate.side_effect = _client_error(
            "NoSuchBucket", 404, "ListObjectsV2"
        )

        with pytest.raises(OffloadListError, match="Bucket not found") as exc_info:
            storage.list_keys()

        assert exc_info.value.error_code == "NoSuchBucket"
        assert exc_info.value.status_code == 404


class TestCountObjects:
    """Tests for count_objects."""

    def test_count(self, storage):
        storage.get_client().list_objects_v2.return_value = {"KeyCount": 3}
        assert storage.count_objects(max_keys=10) == 3
        storage.get_client().list_objects_v2.assert_called_once_with(
            Bucket="media", Prefix="uploads/", MaxKeys=10
        )

    def test_failure(self, storage):
        storage.get_client().list_objects_v2.side_effect = _client_error(
            "InvalidAccessKeyId", 403, "ListObjectsV2"
        )
        with pytest.raises(OffloadStorageError) as exc_info:
            storage.count_objects()
        assert exc_info.value.error_code == "InvalidAccessKeyId"


class TestUrls:
    """Tests for public URL construction."""

    def test_url_without_cdn(self, storage):
        assert (
            storage.url_for("2024/a.jpg")
            == "https://media.fsn1.your-objectstorage.com/uploads/2024/a.jpg"
        )

    def test_url_with_cdn(self, mock_config, mock_boto3):
        client = S3StorageClient(
            access_key="a",
            secret_key="b",
            bucket="media",
            endpoint="example.com",
            cdn_url="https://cdn.example.com/",
        )
        assert client.url_for("/a.jpg") == "https://cdn.example.com/uploads/a.jpg"


class TestFriendlyErrorMessage:
    """Tests for friendly_error_message."""

    @pytest.mark.parametrize(
        "code",
        [
            "AccessDenied",
            "NoSuchBucket",
            "InvalidAccessKeyId",
            "SignatureDoesNotMatch",
            "PermanentRedirect",
            "RequestTimeout",
        ],
    )
    def test_known_codes(self, code):
        assert friendly_error_message(code) != f"{code} (HTTP 0)"

    def test_unknown_code(self):
        assert friendly_error_message("SlowDown", 503) == "SlowDown (HTTP 503)"

    def test_empty_code(self):
        assert friendly_error_message("", 500) == "Unknown error (HTTP 500)"
