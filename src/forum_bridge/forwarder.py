"""
Event forwarder: publishes forum events to Kafka.

Post events are published as-is to the posts topic, keyed by post id.
Upload events are relocated first; only a successful relocation is
published to the images topic, keyed by storage key and enriched with
the remote location. A local fallback is never published.
"""

import logging
from typing import Any

from config.config import BridgeConfig
from core.errors.exceptions import PublishError
from core.logging import get_logger, log_exception, log_with_context, set_log_context
from forum_bridge.common.producer import MessageProducer
from forum_bridge.common.types import ProduceResult
from forum_bridge.relocator import UploadRelocator
from forum_bridge.schemas.events import (
    PostEvent,
    UploadEvent,
    parse_post_event,
    parse_upload_event,
)
from forum_bridge.schemas.results import Relocated, UploadOutcome

logger = get_logger(__name__)


def enrich_upload_payload(event: UploadEvent, relocated: Relocated) -> dict[str, Any]:
    """Original upload payload plus top-level url, path, bucket and name."""
    payload = event.to_payload()
    payload.update(
        {
            "url": relocated.upload.remote_url,
            "path": relocated.upload.storage_key,
            "bucket": relocated.upload.bucket,
            "name": relocated.upload.generated_name,
        }
    )
    return payload


class EventForwarder:
    """
    Entry points for the two forum hooks.

    Usage:
        forwarder = EventForwarder(config, producer, relocator)
        await forwarder.on_post({"post": {"pid": 42}})
        outcome = await forwarder.on_upload(
            {"image": {"path": "/tmp/a.png", "name": "a.png"}, "folder": "avatars"}
        )
        outcome.to_host()  # {"url": ..., "path": ..., "name": ...}
    """

    def __init__(
        self,
        config: BridgeConfig,
        producer: MessageProducer,
        relocator: UploadRelocator,
    ):
        self.config = config
        self.producer = producer
        self.relocator = relocator

    async def on_post(self, event: Any) -> ProduceResult:
        """
        Publish a post-created event to the posts topic.

        Raises:
            EventValidationError: If the payload has no ``post.pid``
            PublishError: If the broker does not acknowledge the message
        """
        post: PostEvent = parse_post_event(event)
        set_log_context(event_kind=PostEvent.kind)

        result = await self.producer.publish(
            self.config.posts_topic,
            post.message_key,
            post.to_payload(),
        )

        log_with_context(
            logger,
            logging.INFO,
            "Forwarded post event",
            topic=result.topic,
            key=post.message_key,
            pid=post.post.pid,
            partition=result.partition,
            offset=result.offset,
        )
        return result

    async def on_upload(self, event: Any) -> UploadOutcome:
        """
        Relocate an uploaded image, then publish it to the images topic.

        Returns:
            Relocated with ``published`` set when the broker acknowledged,
            or FellBackToLocal when the image could not be relocated (nothing
            is published in that case)

        Raises:
            EventValidationError: If ``image.path`` or ``image.name`` is missing
        """
        upload: UploadEvent = parse_upload_event(event)
        set_log_context(event_kind=UploadEvent.kind)

        outcome = await self.relocator.try_relocate(
            upload.image.path,
            upload.image.name,
            folder=upload.folder,
            local_url=upload.image.url,
        )
        if not isinstance(outcome, Relocated):
            return outcome

        storage_key = outcome.upload.storage_key
        try:
            result = await self.producer.publish(
                self.config.images_topic,
                storage_key,
                enrich_upload_payload(upload, outcome),
            )
        except PublishError as e:
            # The object is already public; the host still gets the remote URL
            log_exception(
                logger,
                e,
                "Failed to publish relocated upload",
                topic=self.config.images_topic,
                key=storage_key,
                storage_key=storage_key,
                published=False,
            )
            return outcome

        log_with_context(
            logger,
            logging.INFO,
            "Forwarded upload event",
            topic=result.topic,
            key=storage_key,
            public_url=outcome.url,
            partition=result.partition,
            offset=result.offset,
            published=True,
        )
        return outcome.model_copy(update={"published": True})


__all__ = ["EventForwarder", "enrich_upload_payload"]
