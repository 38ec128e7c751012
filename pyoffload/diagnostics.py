"""Connection and public URL checks for the storage setup."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx

from .exceptions import OffloadStorageError
from .storage import S3StorageClient, friendly_error_message
from .utils import CONNECTION_TEST_MAX_KEYS, URL_CHECK_MAX_REDIRECTS, URL_CHECK_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass
class ConnectionTestResult:
    """Result of a storage connection test."""

    success: bool
    duration: float = 0.0
    object_count: int = 0
    error: str | None = None
    error_code: str | None = None
    error_detail: str | None = None


@dataclass
class UrlCheckResult:
    """Result of probing a public URL."""

    url: str
    accessible: bool
    status_code: int = 0
    error: str | None = None


def run_connection_test(
    storage: S3StorageClient, max_keys: int = CONNECTION_TEST_MAX_KEYS
) -> ConnectionTestResult:
    """Check that the bucket can be listed with the configured credentials.

    Args:
        storage: Storage client to test
        max_keys: Number of keys to request under the namespace prefix

    Returns:
        ConnectionTestResult; failures carry a friendly message
    """
    start = time.time()
    try:
        count = storage.count_objects(max_keys=max_keys)
    except OffloadStorageError as e:
        logger.debug(f"Connection test failed: {e}")
        return ConnectionTestResult(
            success=False,
            duration=time.time() - start,
            error=friendly_error_message(e.error_code, e.status_code),
            error_code=e.error_code,
            error_detail=str(e),
        )
    return ConnectionTestResult(
        success=True, duration=time.time() - start, object_count=count
    )


def check_url(url: str, timeout: float = URL_CHECK_TIMEOUT) -> UrlCheckResult:
    """Probe a URL with a HEAD request.

    Args:
        url: URL to probe
        timeout: Request timeout in seconds

    Returns:
        UrlCheckResult; accessible for any 2xx response
    """
    try:
        with httpx.Client(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            max_redirects=URL_CHECK_MAX_REDIRECTS,
        ) as client:
            response = client.head(url)
    except httpx.HTTPError as e:
        logger.debug(f"HEAD {url} failed: {e}")
        return UrlCheckResult(url=url, accessible=False, error=str(e))

    return UrlCheckResult(
        url=url,
        accessible=200 <= response.status_code < 300,
        status_code=response.status_code,
    )
