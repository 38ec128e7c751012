"""S3-compatible object storage client."""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Any

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .config import config
from .exceptions import OffloadConfigError, OffloadListError, OffloadStorageError
from .utils import format_size

logger = logging.getLogger(__name__)

FRIENDLY_ERROR_MESSAGES = {
    "AccessDenied": "Access denied - check your credentials and bucket permissions",
    "NoSuchBucket": "Bucket not found - verify the bucket name exists",
    "InvalidAccessKeyId": "Invalid access key - check your OFFLOAD_ACCESS_KEY",
    "SignatureDoesNotMatch": "Invalid secret key - check your OFFLOAD_SECRET_KEY",
    "PermanentRedirect": "Wrong endpoint - check your OFFLOAD_ENDPOINT region",
    "RequestTimeout": "Connection timeout - check your network connection",
}

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def friendly_error_message(error_code: str, status_code: int = 0) -> str:
    """Translate an S3 error code into a user-facing message.

    Examples:
        >>> friendly_error_message("NoSuchBucket")
        'Bucket not found - verify the bucket name exists'
        >>> friendly_error_message("SlowDown", 503)
        'SlowDown (HTTP 503)'
    """
    if error_code in FRIENDLY_ERROR_MESSAGES:
        return FRIENDLY_ERROR_MESSAGES[error_code]
    return f"{error_code or 'Unknown error'} (HTTP {status_code})"


def _error_details(e: Exception) -> tuple[str, int]:
    """Extract (error code, HTTP status) from a botocore exception."""
    if isinstance(e, ClientError):
        error = e.response.get("Error", {})
        metadata = e.response.get("ResponseMetadata", {})
        return str(error.get("Code", "")), int(metadata.get("HTTPStatusCode", 0))
    return type(e).__name__, 0


class S3StorageClient:
    """Client for a single bucket on an S3-compatible object store.

    Per-object operations (put, delete, exists) report failure through
    their return value and never raise. Listing raises OffloadListError
    because a partial listing is not usable.
    """

    def __init__(
        self,
        access_key: str | None = None,
        secret_key: str | None = None,
        bucket: str | None = None,
        endpoint: str | None = None,
        region: str | None = None,
        cdn_url: str | None = None,
        prefix: str | None = None,
        timeout: float | None = None,
        acl: str | None = "public-read",
    ):
        """Initialize the storage client.

        Args:
            access_key: Access key (uses config if not provided)
            secret_key: Secret key (uses config if not provided)
            bucket: Bucket name (uses config if not provided)
            endpoint: Endpoint host, e.g. "fsn1.your-objectstorage.com"
            region: Region name (default: eu-central-1)
            cdn_url: Optional public base URL used by url_for
            prefix: Remote namespace prefix (default: uploads/)
            timeout: Connect/read timeout in seconds
            acl: Canned ACL applied to uploaded objects (None for none)

        Raises:
            OffloadConfigError: If credentials, bucket or endpoint are missing
        """
        self.access_key = access_key or config.access_key
        self.secret_key = secret_key or config.secret_key
        self.bucket = bucket or config.bucket
        self.endpoint = endpoint or config.endpoint
        self.region = region or config.region
        self.cdn_url = cdn_url or config.cdn_url
        self.prefix = prefix or config.prefix
        self.timeout = timeout or config.timeout
        self.acl = acl

        missing = [
            label
            for label, value in (
                ("access key", self.access_key),
                ("secret key", self.secret_key),
                ("bucket", self.bucket),
                ("endpoint", self.endpoint),
            )
            if not value
        ]
        if missing:
            raise OffloadConfigError(
                "Storage not configured, missing: " + ", ".join(missing)
            )

        self._client: Any = None

    @property
    def endpoint_url(self) -> str:
        endpoint = self.endpoint or ""
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"https://{endpoint}"

    @property
    def endpoint_host(self) -> str:
        return self.endpoint_url.split("://", 1)[1].rstrip("/")

    def get_client(self) -> Any:
        """Get or create the boto3 S3 client."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.endpoint_url,
                region_name=self.region,
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
                config=BotoConfig(
                    connect_timeout=self.timeout,
                    read_timeout=self.timeout,
                    # One attempt per operation, failures are counted by the caller
                    retries={"max_attempts": 1, "mode": "standard"},
                    s3={"addressing_style": "path"},
                ),
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def put(self, local_path: Path, remote_key: str) -> bool:
        """Upload a local file.

        Args:
            local_path: File to upload
            remote_key: Destination object key

        Returns:
            True if the upload succeeded
        """
        if not local_path.is_file():
            logger.warning(f"Cannot upload {local_path}: file not found")
            return False

        extra_args: dict[str, str] = {}
        if self.acl:
            extra_args["ACL"] = self.acl
        content_type, _ = mimetypes.guess_type(local_path.name)
        if content_type:
            extra_args["ContentType"] = content_type

        try:
            logger.debug(
                f"Uploading {local_path} ({format_size(local_path.stat().st_size)})"
                f" to {remote_key}"
            )
            self.get_client().upload_file(
                str(local_path), self.bucket, remote_key, ExtraArgs=extra_args
            )
            return True
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as e:
            logger.warning(f"Upload of {local_path} to {remote_key} failed: {e}")
            return False

    def delete(self, remote_key: str) -> bool:
        """Delete an object. Deleting an absent key succeeds.

        Returns:
            True if the object no longer exists
        """
        try:
            self.get_client().delete_object(Bucket=self.bucket, Key=remote_key)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Delete of {remote_key} failed: {e}")
            return False

    def exists(self, remote_key: str) -> bool:
        """Check whether an object exists with a HEAD request.

        Errors other than "not found" are logged and reported as absent.
        """
        try:
            self.get_client().head_object(Bucket=self.bucket, Key=remote_key)
            return True
        except ClientError as e:
            error_code, _ = _error_details(e)
            if error_code not in _NOT_FOUND_CODES:
                logger.warning(f"Existence check for {remote_key} failed: {e}")
            return False
        except BotoCoreError as e:
            logger.warning(f"Existence check for {remote_key} failed: {e}")
            return False

    def list_keys(self, prefix: str | None = None) -> set[str]:
        """List every object key under a prefix, following all pages.

        Args:
            prefix: Key prefix (defaults to the configured namespace prefix)

        Returns:
            Set of object keys

        Raises:
            OffloadListError: If any page request fails
        """
        prefix = self.prefix if prefix is None else prefix
        keys: set[str] = set()
        page_count = 0

        try:
            paginator = self.get_client().get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                page_count += 1
                for obj in page.get("Contents", []):
                    keys.add(obj["Key"])
        except (ClientError, BotoCoreError) as e:
            error_code, status_code = _error_details(e)
            raise OffloadListError(
                f"Listing objects under '{prefix}' failed: "
                f"{friendly_error_message(error_code, status_code)}",
                error_code=error_code,
                status_code=status_code,
            ) from e

        logger.debug(f"Listed {len(keys)} keys under '{prefix}' in {page_count} page(s)")
        return keys

    def count_objects(self, prefix: str | None = None, max_keys: int = 10) -> int:
        """Request a single small listing page and return its key count.

        Raises:
            OffloadStorageError: If the request fails
        """
        prefix = self.prefix if prefix is None else prefix
        try:
            result = self.get_client().list_objects_v2(
                Bucket=self.bucket, Prefix=prefix, MaxKeys=max_keys
            )
        except (ClientError, BotoCoreError) as e:
            error_code, status_code = _error_details(e)
            raise OffloadStorageError(
                str(e), error_code=error_code, status_code=status_code
            ) from e
        return int(result.get("KeyCount", 0))

    def base_url(self) -> str:
        """Public base URL of the bucket (CDN URL when configured)."""
        if self.cdn_url:
            return self.cdn_url.rstrip("/")
        return f"https://{self.bucket}.{self.endpoint_host}"

    def url_for(self, relative_key: str) -> str:
        """Public URL for a key given relative to the namespace prefix.

        Examples:
            >>> client.url_for("2024/01/a.jpg")  # doctest: +SKIP
            'https://media.example.com/uploads/2024/01/a.jpg'
        """
        namespace = self.prefix.strip("/")
        key = relative_key.lstrip("/")
        if namespace:
            return f"{self.base_url()}/{namespace}/{key}"
        return f"{self.base_url()}/{key}"
