"""
Async S3-compatible object store client.

Provides an async-friendly interface to a single bucket on an S3-compatible
endpoint (AWS S3, MinIO, Ceph). Wraps the blocking boto3 client with
asyncio.to_thread for non-blocking operations.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from config.config import BridgeConfig
from core.errors.exceptions import UploadError
from core.logging import get_logger, log_with_context

logger = get_logger(__name__)

# head_bucket error codes meaning "bucket does not exist"
BUCKET_NOT_FOUND_CODES = frozenset({"404", "NoSuchBucket", "NotFound"})

# Objects are publicly retrievable so clients can fetch images directly.
# A put that times out keeps running in its worker thread; once it finishes
# the key is deleted so no public object is left behind for a fallback.
DEFAULT_ACL = "public-read"


@dataclass(frozen=True)
class StoredObject:
    """Location descriptor for an uploaded object."""

    bucket: str
    key: str
    content_type: str
    size_bytes: int
    etag: Optional[str] = None


def create_s3_client(config: BridgeConfig) -> Any:
    """Create a boto3 S3 client bound to the configured endpoint."""
    return boto3.client(
        "s3",
        endpoint_url=config.s3_endpoint,
        aws_access_key_id=config.s3_access_key_id or None,
        aws_secret_access_key=config.s3_secret_access_key or None,
        region_name=config.s3_region,
        config=BotoConfig(
            signature_version="s3v4",
            # Path-style addressing for MinIO and other self-hosted stores
            s3={"addressing_style": "path"},
            retries={"max_attempts": 1, "mode": "standard"},
        ),
    )


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class ObjectStoreClient:
    """
    Async wrapper for bucket and object operations.

    Uses asyncio.to_thread to make blocking boto3 calls non-blocking. The
    boto3 client is created once and shared across concurrent uploads.

    Usage:
        client = ObjectStoreClient(config)
        await client.ensure_bucket()
        stored = await client.put(data, "avatars/abc.png", "image/png")
    """

    def __init__(self, config: BridgeConfig, client: Optional[Any] = None):
        """
        Initialize object store client.

        Args:
            config: Bridge configuration (endpoint, credentials, bucket)
            client: Pre-built boto3-compatible client (defaults to one built
                from config)
        """
        self.config = config
        self.bucket = config.s3_bucket
        self._client = client if client is not None else create_s3_client(config)
        self._cleanup_tasks: set[asyncio.Task] = set()

        logger.debug(
            "Initialized object store client",
            extra={"endpoint": config.s3_endpoint, "bucket": self.bucket},
        )

    async def ensure_bucket(self) -> bool:
        """
        Make sure the configured bucket exists, creating it if absent.

        Idempotent: an existing bucket is left untouched.

        Returns:
            True if the bucket was created, False if it already existed

        Raises:
            UploadError: On any error other than "bucket not found"
        """
        try:
            await asyncio.to_thread(self._client.head_bucket, Bucket=self.bucket)
            logger.debug("Bucket already exists", extra={"bucket": self.bucket})
            return False
        except ClientError as e:
            if _error_code(e) not in BUCKET_NOT_FOUND_CODES:
                raise UploadError(
                    f"Failed to check bucket {self.bucket}",
                    cause=e,
                    context={"bucket": self.bucket},
                ) from e
        except BotoCoreError as e:
            raise UploadError(
                f"Failed to check bucket {self.bucket}",
                cause=e,
                context={"bucket": self.bucket},
            ) from e

        create_kwargs = {"Bucket": self.bucket}
        if self.config.s3_region and self.config.s3_region != "us-east-1":
            create_kwargs["CreateBucketConfiguration"] = {
                "LocationConstraint": self.config.s3_region
            }

        try:
            await asyncio.to_thread(self._client.create_bucket, **create_kwargs)
        except (ClientError, BotoCoreError) as e:
            raise UploadError(
                f"Failed to create bucket {self.bucket}",
                cause=e,
                context={"bucket": self.bucket},
            ) from e

        log_with_context(
            logger,
            logging.INFO,
            "Created bucket",
            bucket=self.bucket,
            endpoint=self.config.s3_endpoint,
            bucket_created=True,
        )
        return True

    async def put(self, data: bytes, key: str, content_type: str) -> StoredObject:
        """
        Upload bytes under ``key`` with public-read access (async, non-blocking).

        Args:
            data: Object content
            key: Storage key within the bucket
            content_type: Content-Type stored with the object

        Returns:
            StoredObject describing the uploaded object

        Raises:
            UploadError: On upload failure or if it exceeds upload_timeout_seconds
        """
        start = time.perf_counter()
        put_task = asyncio.ensure_future(
            asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL=DEFAULT_ACL,
            )
        )
        try:
            response = await asyncio.wait_for(
                asyncio.shield(put_task), timeout=self.config.upload_timeout_seconds
            )
        except asyncio.TimeoutError as e:
            self._schedule_orphan_cleanup(put_task, key)
            raise UploadError(
                f"Upload of {key} timed out after {self.config.upload_timeout_seconds}s",
                storage_key=key,
                cause=e,
                context={"bucket": self.bucket},
            ) from e
        except (ClientError, BotoCoreError) as e:
            raise UploadError(
                f"Failed to upload {key} to bucket {self.bucket}",
                storage_key=key,
                cause=e,
                context={"bucket": self.bucket},
            ) from e

        log_with_context(
            logger,
            logging.DEBUG,
            "Uploaded object",
            bucket=self.bucket,
            storage_key=key,
            content_type=content_type,
            bytes_uploaded=len(data),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )

        return StoredObject(
            bucket=self.bucket,
            key=key,
            content_type=content_type,
            size_bytes=len(data),
            etag=(response or {}).get("ETag"),
        )

    def _schedule_orphan_cleanup(self, put_task: asyncio.Future, key: str) -> None:
        task = asyncio.create_task(self._remove_orphan(put_task, key))
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)

    async def _remove_orphan(self, put_task: asyncio.Future, key: str) -> None:
        """Delete ``key`` once a timed-out put has finished in its thread."""
        try:
            await put_task
        except Exception:
            # The put failed, so nothing landed in the bucket
            return

        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            log_with_context(
                logger,
                logging.WARNING,
                "Failed to delete object left by timed-out upload",
                bucket=self.bucket,
                storage_key=key,
                error=str(e),
            )
            return

        log_with_context(
            logger,
            logging.INFO,
            "Deleted object left by timed-out upload",
            bucket=self.bucket,
            storage_key=key,
        )

    async def close(self) -> None:
        """Wait for pending orphan cleanups, then close the HTTP connection pool."""
        if self._cleanup_tasks:
            await asyncio.gather(*self._cleanup_tasks, return_exceptions=True)
        close = getattr(self._client, "close", None)
        if close is not None:
            await asyncio.to_thread(close)
            logger.debug("Object store client closed")


__all__ = [
    "BUCKET_NOT_FOUND_CODES",
    "DEFAULT_ACL",
    "ObjectStoreClient",
    "StoredObject",
    "create_s3_client",
]
