"""
Kafka producer wrapper for the bridge.

Provides async Kafka producer functionality with:
- One aiokafka producer per process, started once
- SASL PLAIN/SCRAM authentication
- JSON serialization of pydantic models and mappings
- Bounded publish timeout, failures surfaced as PublishError
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Mapping, Optional, Union

from aiokafka import AIOKafkaProducer
from pydantic import BaseModel

from config.config import BridgeConfig
from core.errors.exceptions import InitializationError, PublishError
from core.logging import get_logger, log_exception, log_with_context
from core.utils.json_serializers import json_serializer
from forum_bridge.common.metrics import (
    record_message_produced,
    record_producer_error,
    update_connection_status,
)
from forum_bridge.common.types import ProduceResult

logger = get_logger(__name__)


def build_producer_config(config: BridgeConfig) -> Dict[str, Any]:
    """Build AIOKafkaProducer keyword arguments from bridge config."""
    producer_config: Dict[str, Any] = {
        "bootstrap_servers": config.broker_list,
        "client_id": config.client_id,
        "value_serializer": lambda v: v,  # Serialization handled in publish()
        "request_timeout_ms": config.request_timeout_ms,
        "acks": "all",
    }

    if config.security_protocol != "PLAINTEXT":
        producer_config["security_protocol"] = config.security_protocol
        if config.security_protocol.startswith("SASL_"):
            producer_config["sasl_mechanism"] = config.sasl_mechanism
            producer_config["sasl_plain_username"] = config.sasl_plain_username
            producer_config["sasl_plain_password"] = config.sasl_plain_password

    return producer_config


def serialize_payload(payload: Union[BaseModel, Mapping[str, Any]]) -> bytes:
    """Serialize a message value to UTF-8 JSON bytes."""
    if isinstance(payload, BaseModel):
        return payload.model_dump_json().encode("utf-8")
    return json.dumps(payload, default=json_serializer).encode("utf-8")


class MessageProducer:
    """
    Async Kafka producer shared by every event handler.

    Started once at bridge startup and shared without locks; aiokafka's
    producer is safe for concurrent sends from one event loop.

    Usage:
        >>> producer = MessageProducer(config)
        >>> await producer.connect()
        >>> try:
        ...     result = await producer.publish(
        ...         topic="nodebb-posts",
        ...         key="42",
        ...         payload={"post": {"pid": 42}},
        ...     )
        ... finally:
        ...     await producer.stop()
    """

    def __init__(self, config: BridgeConfig):
        self.config = config
        self._producer: Optional[AIOKafkaProducer] = None
        self._started = False

        log_with_context(
            logger,
            logging.DEBUG,
            "Initialized Kafka producer",
            bootstrap_servers=config.bootstrap_servers,
            client_id=config.client_id,
        )

    @property
    def is_connected(self) -> bool:
        return self._started and self._producer is not None

    async def connect(self) -> None:
        """
        Start the Kafka producer and establish connection.

        Idempotent: a second call on a started producer does nothing.

        Raises:
            InitializationError: If the broker cannot be reached
        """
        if self._started:
            logger.debug("Producer already started, ignoring duplicate connect call")
            return

        logger.info("Starting Kafka producer")

        producer = AIOKafkaProducer(**build_producer_config(self.config))
        try:
            await producer.start()
        except Exception as e:
            update_connection_status("producer", connected=False)
            # Release sockets opened before the failure
            try:
                await producer.stop()
            except Exception as stop_error:
                logger.debug(f"Ignoring error while stopping failed producer: {stop_error}")
            raise InitializationError(
                f"Failed to connect to Kafka brokers {self.config.bootstrap_servers}",
                cause=e,
                context={"bootstrap_servers": self.config.bootstrap_servers},
            ) from e

        self._producer = producer
        self._started = True
        update_connection_status("producer", connected=True)

        log_with_context(
            logger,
            logging.INFO,
            "Kafka producer started successfully",
            bootstrap_servers=self.config.bootstrap_servers,
            client_id=self.config.client_id,
        )

    async def stop(self) -> None:
        """
        Stop the Kafka producer and cleanup resources.

        Flushes any pending messages and closes the connection gracefully.
        Safe to call multiple times. Errors during stop are logged, not raised.
        """
        if not self._started or self._producer is None:
            logger.debug("Producer not started or already stopped")
            return

        logger.info("Stopping Kafka producer")

        try:
            await self._producer.flush()
            await self._producer.stop()
            logger.info("Kafka producer stopped successfully")
        except Exception as e:
            log_exception(
                logger,
                e,
                "Error stopping Kafka producer",
            )
        finally:
            update_connection_status("producer", connected=False)
            self._producer = None
            self._started = False

    async def publish(
        self,
        topic: str,
        key: str,
        payload: Union[BaseModel, Mapping[str, Any]],
    ) -> ProduceResult:
        """
        Publish a single message and wait for broker acknowledgement.

        Args:
            topic: Kafka topic name
            key: Message key (used for partitioning)
            payload: Pydantic model or mapping to serialize as the message value

        Returns:
            ProduceResult with topic, partition, offset

        Raises:
            PublishError: If not connected, the send fails, or it exceeds
                publish_timeout_seconds
        """
        if not self.is_connected:
            record_producer_error(topic, "not_connected")
            raise PublishError("Producer not started. Call connect() first.", topic=topic, key=key)

        try:
            value_bytes = serialize_payload(payload)
        except (TypeError, ValueError) as e:
            record_producer_error(topic, "serialization")
            raise PublishError(
                f"Failed to serialize message for topic {topic}", topic=topic, key=key, cause=e
            ) from e

        log_with_context(
            logger,
            logging.DEBUG,
            "Sending message to Kafka",
            topic=topic,
            key=key,
            value_size=len(value_bytes),
        )

        start = time.perf_counter()
        try:
            metadata = await asyncio.wait_for(
                self._producer.send_and_wait(
                    topic,
                    key=key.encode("utf-8"),
                    value=value_bytes,
                ),
                timeout=self.config.publish_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            record_producer_error(topic, "timeout")
            raise PublishError(
                f"Publish to {topic} timed out after {self.config.publish_timeout_seconds}s",
                topic=topic,
                key=key,
                cause=e,
            ) from e
        except Exception as e:
            record_message_produced(topic, len(value_bytes), success=False)
            raise PublishError(
                f"Failed to publish message to {topic}", topic=topic, key=key, cause=e
            ) from e

        record_message_produced(topic, len(value_bytes), success=True)

        log_with_context(
            logger,
            logging.DEBUG,
            "Message sent successfully",
            topic=metadata.topic,
            key=key,
            partition=metadata.partition,
            offset=metadata.offset,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )

        return ProduceResult(
            topic=metadata.topic,
            partition=metadata.partition,
            offset=metadata.offset,
        )


__all__ = [
    "MessageProducer",
    "build_producer_config",
    "serialize_payload",
]
