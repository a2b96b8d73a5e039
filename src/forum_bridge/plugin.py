"""
Forum bridge context object.

Owns the long-lived clients (Kafka producer, object store) and the
handlers built on them. Clients are constructed once, started before any
event is handled, and shared by every event task.

Usage:
    bridge = ForumBridge.from_config(load_config())
    await bridge.start()
    try:
        await bridge.handle_post({"post": {"pid": 42}})
        host_result = await bridge.handle_upload(payload)
    finally:
        await bridge.stop()
"""

import logging
from typing import Any, Optional

from config.config import BridgeConfig
from core.errors.exceptions import UploadError
from core.logging import get_logger, log_exception, log_startup, log_with_context
from forum_bridge.common.producer import MessageProducer
from forum_bridge.common.storage import ObjectStoreClient
from forum_bridge.common.types import ProduceResult
from forum_bridge.forwarder import EventForwarder
from forum_bridge.relocator import UploadRelocator
from forum_bridge.schemas.results import UploadOutcome

logger = get_logger(__name__)


class ForumBridge:
    """Forwards forum events to Kafka and relocates uploads to object storage."""

    def __init__(
        self,
        config: BridgeConfig,
        producer: MessageProducer,
        store: ObjectStoreClient,
    ):
        self.config = config
        self.producer = producer
        self.store = store
        self.relocator = UploadRelocator(config, store)
        self.forwarder = EventForwarder(config, producer, self.relocator)
        self._bucket_ready: Optional[bool] = None

    @classmethod
    def from_config(cls, config: BridgeConfig) -> "ForumBridge":
        return cls(config, MessageProducer(config), ObjectStoreClient(config))

    @property
    def is_ready(self) -> bool:
        return self.producer.is_connected

    @property
    def bucket_ready(self) -> Optional[bool]:
        """None until start() has checked the bucket."""
        return self._bucket_ready

    async def start(self) -> None:
        """
        Connect to the broker and make sure the bucket exists.

        Raises:
            InitializationError: If the broker is unreachable. A bucket
                check failure is logged and does not abort startup; uploads
                then fall back to local files until the store recovers.
        """
        log_startup(
            logger,
            "forum-bridge",
            bootstrap_servers=self.config.bootstrap_servers,
            topics={"Posts": self.config.posts_topic, "Images": self.config.images_topic},
            extra_config={
                "endpoint": self.config.s3_endpoint,
                "public_endpoint": self.config.public_endpoint,
                "bucket": self.config.s3_bucket,
            },
        )

        await self.producer.connect()

        try:
            created = await self.store.ensure_bucket()
        except UploadError as e:
            self._bucket_ready = False
            log_exception(
                logger,
                e,
                "Bucket check failed; uploads will fall back to local files",
                level=logging.WARNING,
                bucket=self.config.s3_bucket,
                endpoint=self.config.s3_endpoint,
            )
        else:
            self._bucket_ready = True
            log_with_context(
                logger,
                logging.INFO,
                "Bucket ready",
                bucket=self.config.s3_bucket,
                bucket_created=created,
            )

        logger.info("Forum bridge started")

    async def stop(self) -> None:
        """Flush and close the producer, then release the store client."""
        await self.producer.stop()
        try:
            await self.store.close()
        except Exception as e:
            log_exception(logger, e, "Error closing object store client")
        logger.info("Forum bridge stopped")

    async def handle_post(self, payload: Any) -> ProduceResult:
        """Post-created hook. Raises EventValidationError or PublishError."""
        return await self.forwarder.on_post(payload)

    async def handle_upload(self, payload: Any) -> UploadOutcome:
        """Image-uploaded hook. Raises EventValidationError only."""
        return await self.forwarder.on_upload(payload)


__all__ = ["ForumBridge"]
