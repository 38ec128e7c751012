"""Shared fixtures for engine tests."""

import tempfile
from pathlib import Path

import pytest


class FakeStorage:
    """In-memory stand-in for S3StorageClient that records every call."""

    def __init__(self, keys=(), prefix="uploads/"):
        self.prefix = prefix
        self.objects = set(keys)
        self.failing_puts = set()
        self.failing_deletes = set()
        self.list_error = None
        self.put_calls = []
        self.delete_calls = []
        self.exists_calls = []
        self.list_calls = []

    def put(self, local_path, remote_key):
        self.put_calls.append((local_path, remote_key))
        if remote_key in self.failing_puts:
            return False
        self.objects.add(remote_key)
        return True

    def delete(self, remote_key):
        self.delete_calls.append(remote_key)
        if remote_key in self.failing_deletes:
            return False
        self.objects.discard(remote_key)
        return True

    def exists(self, remote_key):
        self.exists_calls.append(remote_key)
        return remote_key in self.objects

    def list_keys(self, prefix=None):
        prefix = self.prefix if prefix is None else prefix
        self.list_calls.append(prefix)
        if self.list_error is not None:
            raise self.list_error
        return {key for key in self.objects if key.startswith(prefix)}


@pytest.fixture
def fake_storage():
    """Create an empty in-memory storage."""
    return FakeStorage()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_file(temp_dir):
    """Create a file below the temporary library root."""

    def _make(relative_path, content=b"data"):
        path = temp_dir / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _make
