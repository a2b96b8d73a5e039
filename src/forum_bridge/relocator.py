"""
Upload relocator: moves an uploaded image from local disk to the bucket.

Reads the file fully into memory, uploads it under ``[folder/]<uuid><ext>``
and builds the public URL from the configured public endpoint (which may be
a proxy in front of the storage endpoint).
"""

import asyncio
import logging
import time
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from config.config import BridgeConfig
from core.errors.exceptions import UploadError
from core.logging import get_logger, log_exception, log_with_context
from forum_bridge.common.metrics import record_upload
from forum_bridge.common.storage import ObjectStoreClient, content_type_for
from forum_bridge.schemas.results import FellBackToLocal, Relocated, UploadOutcome, UploadResult

logger = get_logger(__name__)


def extension_for(original_name: str, local_path: Union[str, Path]) -> str:
    """Lower-cased extension of the original name, else of the local path."""
    suffix = PurePosixPath(original_name).suffix or PurePosixPath(str(local_path)).suffix
    return suffix.lower()


def build_storage_key(name: str, folder: Optional[str] = None) -> str:
    """``folder/name`` when a folder is given, else ``name``."""
    folder = (folder or "").strip("/")
    return f"{folder}/{name}" if folder else name


def build_public_url(public_endpoint: str, bucket: str, storage_key: str) -> str:
    return f"{public_endpoint.rstrip('/')}/{bucket}/{storage_key}"


class UploadRelocator:
    """
    Relocates local uploads to the object store.

    Usage:
        relocator = UploadRelocator(config, object_store)
        outcome = await relocator.try_relocate("/tmp/a.png", "a.png", folder="avatars")
        outcome.url  # remote URL, or the local one if the upload failed
    """

    def __init__(self, config: BridgeConfig, store: ObjectStoreClient):
        self.config = config
        self.store = store

    async def relocate(
        self,
        local_path: Union[str, Path],
        original_name: str,
        folder: Optional[str] = None,
    ) -> UploadResult:
        """
        Upload a local file and return where it now lives.

        Args:
            local_path: File written by the forum
            original_name: Client-supplied file name, used for the extension
            folder: Optional key prefix, e.g. "avatars"

        Returns:
            UploadResult with remote URL, storage key and generated name

        Raises:
            UploadError: If the file cannot be read or the upload fails
        """
        generated_name = f"{uuid.uuid4()}{extension_for(original_name, local_path)}"
        storage_key = build_storage_key(generated_name, folder)

        try:
            data = await asyncio.to_thread(Path(local_path).read_bytes)
        except OSError as e:
            raise UploadError(
                f"Failed to read local upload {local_path}",
                storage_key=storage_key,
                cause=e,
                context={"local_path": str(local_path)},
            ) from e

        stored = await self.store.put(data, storage_key, content_type_for(generated_name))

        return UploadResult(
            remote_url=build_public_url(
                self.config.public_endpoint, stored.bucket, stored.key
            ),
            storage_key=stored.key,
            generated_name=generated_name,
            bucket=stored.bucket,
            content_type=stored.content_type,
            size_bytes=stored.size_bytes,
        )

    async def try_relocate(
        self,
        local_path: Union[str, Path],
        original_name: str,
        folder: Optional[str] = None,
        local_url: Optional[str] = None,
    ) -> UploadOutcome:
        """
        Relocate, falling back to the local reference on any error.

        Never raises; the failure is logged and returned as FellBackToLocal
        so the forum keeps serving the local file.
        """
        start = time.perf_counter()
        try:
            result = await self.relocate(local_path, original_name, folder)
        except Exception as e:
            duration = time.perf_counter() - start
            record_upload("fallback", duration_seconds=duration)
            log_exception(
                logger,
                e,
                "Upload relocation failed, keeping local file",
                level=logging.WARNING,
                include_traceback=not isinstance(e, UploadError),
                local_path=str(local_path),
                storage_key=getattr(e, "storage_key", None),
                outcome="fallback",
                duration_ms=round(duration * 1000, 2),
            )
            return FellBackToLocal(
                reason=str(e),
                local_path=str(local_path),
                local_url=local_url,
                original_name=original_name,
            )

        duration = time.perf_counter() - start
        record_upload("relocated", size_bytes=result.size_bytes, duration_seconds=duration)
        log_with_context(
            logger,
            logging.INFO,
            "Relocated upload to object store",
            local_path=str(local_path),
            storage_key=result.storage_key,
            bucket=result.bucket,
            public_url=result.remote_url,
            bytes_uploaded=result.size_bytes,
            outcome="relocated",
            duration_ms=round(duration * 1000, 2),
        )
        return Relocated(upload=result, original_name=original_name)


__all__ = [
    "UploadRelocator",
    "build_public_url",
    "build_storage_key",
    "extension_for",
]
