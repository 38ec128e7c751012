"""Unit tests for the PyOffload CLI commands."""

import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from pyoffload.cli import main
from pyoffload.diagnostics import ConnectionTestResult, UrlCheckResult
from pyoffload.exceptions import OffloadConfigError, OffloadListError


@pytest.fixture
def runner():
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_config():
    """Mock the config module."""
    with patch("pyoffload.cli.config") as mock:
        mock.uploads_dir = None
        mock.manifest = None
        mock.bucket = "media"
        mock.endpoint = "example.com"
        mock.region = "eu-central-1"
        mock.cdn_url = None
        mock.prefix = "uploads/"
        mock.access_key = "key"
        mock.secret_key = "secret"
        mock.missing_settings.return_value = []
        mock.is_configured.return_value = True
        mock.get_config_path.return_value = Path("/mock/config")
        yield mock


@pytest.fixture
def library_args(temp_dir, make_file):
    """Create a library with two media items and return the CLI options."""
    make_file("uploads/2024/a.jpg")
    make_file("uploads/2024/a-150.jpg")
    manifest = temp_dir / "manifest.json"
    manifest.write_text(
        json.dumps(
            [
                {
                    "id": 1,
                    "file": "2024/a.jpg",
                    "sizes": {"thumbnail": {"file": "a-150.jpg"}},
                },
                {"id": 2, "file": "2024/b.jpg"},
            ]
        )
    )
    return ["--uploads-dir", str(temp_dir / "uploads"), "--manifest", str(manifest)]


@pytest.fixture
def storage_class(fake_storage):
    """Patch the storage client class to return the in-memory storage."""
    with patch("pyoffload.cli.S3StorageClient", return_value=fake_storage) as mock:
        yield mock


class TestMainGroup:
    """Tests for the main CLI group."""

    def test_main_help(self, runner):
        """Test main help shows all commands."""
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "PyOffload" in result.output
        for command in ("init", "sync", "verify", "info", "check-url"):
            assert command in result.output


class TestInitCommand:
    """Tests for the init command."""

    def test_init_saves_settings(self, runner, mock_config):
        result = runner.invoke(
            main, ["init"], input="key\nsecret\nmedia\nfsn1.example.com\n"
        )

        assert result.exit_code == 0
        assert "Configuration saved successfully" in result.output
        kwargs = mock_config.save.call_args.kwargs
        assert kwargs["OFFLOAD_ACCESS_KEY"] == "key"
        assert kwargs["OFFLOAD_SECRET_KEY"] == "secret"
        assert kwargs["OFFLOAD_BUCKET"] == "media"
        assert kwargs["OFFLOAD_ENDPOINT"] == "fsn1.example.com"


class TestSyncCommand:
    """Tests for the sync command."""

    def test_sync_dry_run(self, runner, mock_config, storage_class, library_args):
        result = runner.invoke(main, library_args + ["sync", "--dry-run"])

        assert result.exit_code == 0
        assert "Synchronization Summary" in result.output
        assert "Dry run synchronization process completed" in result.output
        assert storage_class.return_value.put_calls == []

    def test_sync_json(self, runner, mock_config, storage_class, library_args):
        result = runner.invoke(main, ["--json"] + library_args + ["sync"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["total_attachments"] == 2
        assert data["counters"]["files_uploaded"] == 2
        assert data["counters"]["files_local_not_found"] == 1

    def test_sync_upload_errors_exit_nonzero(
        self, runner, mock_config, storage_class, library_args
    ):
        storage_class.return_value.failing_puts.add("uploads/2024/a.jpg")

        result = runner.invoke(main, ["--json"] + library_args + ["sync"])

        assert result.exit_code == 1
        assert json.loads(result.output)["counters"]["files_s3_errors"] == 1

    def test_sync_without_uploads_dir(self, runner, mock_config, storage_class):
        result = runner.invoke(main, ["sync"])

        assert result.exit_code == 1
        assert "Uploads directory not configured" in result.output

    def test_sync_storage_not_configured(self, runner, mock_config, library_args):
        with patch(
            "pyoffload.cli.S3StorageClient",
            side_effect=OffloadConfigError("Storage not configured, missing: bucket"),
        ):
            result = runner.invoke(main, library_args + ["sync"])

        assert result.exit_code == 1
        assert "Storage not configured" in result.output

    def test_sync_list_failure(self, runner, mock_config, storage_class, library_args):
        storage_class.return_value.list_error = OffloadListError(
            "Listing objects under 'uploads/' failed: Access denied"
        )

        result = runner.invoke(main, library_args + ["sync"])

        assert result.exit_code == 1
        assert "Access denied" in result.output


class TestVerifyCommand:
    """Tests for the verify command."""

    def test_verify_lists_limited_orphans(
        self, runner, mock_config, storage_class, library_args
    ):
        storage_class.return_value.objects.update(
            f"uploads/orphan-{i:02d}.jpg" for i in range(25)
        )

        result = runner.invoke(main, library_args + ["verify"])

        assert result.exit_code == 0
        assert "Verification Summary" in result.output
        assert "uploads/orphan-00.jpg" in result.output
        assert "uploads/orphan-19.jpg" in result.output
        assert "uploads/orphan-20.jpg" not in result.output
        assert "...and 5 more." in result.output

    def test_verify_json(self, runner, mock_config, storage_class, library_args):
        storage = storage_class.return_value
        storage.objects.update({"uploads/2024/a.jpg", "uploads/old.jpg"})

        result = runner.invoke(
            main, ["--json"] + library_args + ["verify", "--reupload-missing"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["orphans"] == ["uploads/old.jpg"]
        assert data["counters"]["s3_missing"] == 1
        assert data["counters"]["s3_reuploaded"] == 1
        assert data["counters"]["local_missing_s3_missing"] == 1
        assert "uploads/2024/a-150.jpg" in storage.objects


class TestInfoCommand:
    """Tests for the info command."""

    @patch("pyoffload.cli.run_connection_test")
    def test_info_connection_success(
        self, mock_test, runner, mock_config, storage_class
    ):
        mock_test.return_value = ConnectionTestResult(
            success=True, duration=0.05, object_count=3
        )

        result = runner.invoke(main, ["info"])

        assert result.exit_code == 0
        assert "Storage Configuration" in result.output
        assert "Connection successful" in result.output

    @patch("pyoffload.cli.run_connection_test")
    def test_info_connection_failure(
        self, mock_test, runner, mock_config, storage_class
    ):
        mock_test.return_value = ConnectionTestResult(
            success=False,
            error="Access denied - check your credentials and bucket permissions",
            error_code="AccessDenied",
        )

        result = runner.invoke(main, ["info"])

        assert result.exit_code == 1
        assert "Access denied" in result.output

    def test_info_not_configured(self, runner, mock_config):
        mock_config.is_configured.return_value = False
        mock_config.missing_settings.return_value = ["OFFLOAD_BUCKET"]

        result = runner.invoke(main, ["--json", "info"])

        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["connection"] is None
        assert data["settings"]["missing"] == ["OFFLOAD_BUCKET"]


class TestCheckUrlCommand:
    """Tests for the check-url command."""

    @pytest.fixture
    def mock_storage(self):
        storage = Mock()
        storage.prefix = "uploads/"
        storage.url_for.side_effect = (
            lambda key: f"https://cdn.example.com/uploads/{key}"
        )
        with patch("pyoffload.cli.S3StorageClient", return_value=storage):
            yield storage

    @patch("pyoffload.cli.check_url")
    def test_accessible(self, mock_check, runner, mock_storage):
        url = "https://cdn.example.com/uploads/2024/a.jpg"
        mock_check.return_value = UrlCheckResult(url=url, accessible=True, status_code=200)

        result = runner.invoke(main, ["check-url", "uploads/2024/a.jpg"])

        assert result.exit_code == 0
        mock_storage.url_for.assert_called_once_with("2024/a.jpg")
        mock_check.assert_called_once_with(url)
        assert "Accessible" in result.output

    @patch("pyoffload.cli.check_url")
    def test_not_accessible(self, mock_check, runner, mock_storage):
        url = "https://cdn.example.com/uploads/a.jpg"
        mock_check.return_value = UrlCheckResult(
            url=url, accessible=False, status_code=403
        )

        result = runner.invoke(main, ["check-url", "a.jpg"])

        assert result.exit_code == 1
        assert "HTTP 403" in result.output
