"""
Tests for the Kafka producer wrapper.

These are unit tests that use mocks - no Docker/Kafka required.
"""

import asyncio
import json
from unittest.mock import MagicMock, patch

import pytest
from aiokafka.errors import KafkaConnectionError, KafkaTimeoutError
from pydantic import BaseModel

from config.config import BridgeConfig
from core.errors.exceptions import InitializationError, PublishError
from forum_bridge.common.producer import MessageProducer, build_producer_config, serialize_payload
from forum_bridge.common.types import ProduceResult


class SampleMessage(BaseModel):
    """Sample message schema for testing."""

    id: str
    content: str


def _metadata(topic="nodebb-posts", partition=0, offset=42):
    metadata = MagicMock()
    metadata.topic = topic
    metadata.partition = partition
    metadata.offset = offset
    return metadata


@pytest.fixture
def producer(bridge_config):
    return MessageProducer(bridge_config)


@pytest.fixture
def started_producer(producer, mock_aiokafka_producer):
    """Producer marked as connected with a mocked aiokafka producer."""
    producer._producer = mock_aiokafka_producer
    producer._started = True
    return producer


class TestBuildProducerConfig:
    def test_plaintext(self, bridge_config):
        config = build_producer_config(bridge_config)

        assert config["bootstrap_servers"] == ["localhost:9092"]
        assert config["client_id"] == "test-bridge"
        assert config["acks"] == "all"
        assert "security_protocol" not in config

    def test_sasl_credentials(self):
        config = build_producer_config(
            BridgeConfig(
                security_protocol="SASL_SSL",
                sasl_mechanism="SCRAM-SHA-512",
                sasl_plain_username="user",
                sasl_plain_password="pass",
            )
        )

        assert config["security_protocol"] == "SASL_SSL"
        assert config["sasl_mechanism"] == "SCRAM-SHA-512"
        assert config["sasl_plain_username"] == "user"
        assert config["sasl_plain_password"] == "pass"

    def test_ssl_without_sasl(self):
        config = build_producer_config(BridgeConfig(security_protocol="SSL"))

        assert config["security_protocol"] == "SSL"
        assert "sasl_mechanism" not in config


class TestSerializePayload:
    def test_pydantic_model(self):
        value = serialize_payload(SampleMessage(id="1", content="hi"))
        assert json.loads(value) == {"id": "1", "content": "hi"}

    def test_mapping(self):
        value = serialize_payload({"post": {"pid": 42, "title": "héllo"}})
        assert json.loads(value.decode("utf-8")) == {"post": {"pid": 42, "title": "héllo"}}


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_starts_producer(self, producer, mock_aiokafka_producer):
        with patch(
            "forum_bridge.common.producer.AIOKafkaProducer",
            return_value=mock_aiokafka_producer,
        ) as mock_cls:
            await producer.connect()

        mock_cls.assert_called_once()
        mock_aiokafka_producer.start.assert_awaited_once()
        assert producer.is_connected

    @pytest.mark.asyncio
    async def test_connect_is_idempotent(self, producer, mock_aiokafka_producer):
        with patch(
            "forum_bridge.common.producer.AIOKafkaProducer",
            return_value=mock_aiokafka_producer,
        ) as mock_cls:
            await producer.connect()
            await producer.connect()

        mock_cls.assert_called_once()
        mock_aiokafka_producer.start.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_failure_raises_initialization_error(
        self, producer, mock_aiokafka_producer
    ):
        mock_aiokafka_producer.start.side_effect = KafkaConnectionError("unreachable")

        with patch(
            "forum_bridge.common.producer.AIOKafkaProducer",
            return_value=mock_aiokafka_producer,
        ):
            with pytest.raises(InitializationError) as exc_info:
                await producer.connect()

        assert isinstance(exc_info.value.cause, KafkaConnectionError)
        assert not producer.is_connected
        mock_aiokafka_producer.stop.assert_awaited_once()


class TestStop:
    @pytest.mark.asyncio
    async def test_stop_flushes_and_stops(self, started_producer, mock_aiokafka_producer):
        await started_producer.stop()

        mock_aiokafka_producer.flush.assert_awaited_once()
        mock_aiokafka_producer.stop.assert_awaited_once()
        assert not started_producer.is_connected

    @pytest.mark.asyncio
    async def test_stop_when_not_started_is_noop(self, producer):
        await producer.stop()
        assert not producer.is_connected

    @pytest.mark.asyncio
    async def test_stop_errors_are_not_raised(self, started_producer, mock_aiokafka_producer):
        mock_aiokafka_producer.flush.side_effect = RuntimeError("flush failed")

        await started_producer.stop()

        assert not started_producer.is_connected


class TestPublish:
    @pytest.mark.asyncio
    async def test_publish_sends_key_and_json_value(self, started_producer, mock_aiokafka_producer):
        mock_aiokafka_producer.send_and_wait.return_value = _metadata(partition=2, offset=7)

        result = await started_producer.publish("nodebb-posts", "42", {"post": {"pid": 42}})

        assert result == ProduceResult(topic="nodebb-posts", partition=2, offset=7)
        args, kwargs = mock_aiokafka_producer.send_and_wait.call_args
        assert args == ("nodebb-posts",)
        assert kwargs["key"] == b"42"
        assert json.loads(kwargs["value"]) == {"post": {"pid": 42}}

    @pytest.mark.asyncio
    async def test_publish_not_connected_raises(self, producer):
        with pytest.raises(PublishError) as exc_info:
            await producer.publish("nodebb-posts", "42", {"post": {"pid": 42}})

        assert exc_info.value.topic == "nodebb-posts"
        assert exc_info.value.key == "42"

    @pytest.mark.asyncio
    async def test_publish_send_failure_raises(self, started_producer, mock_aiokafka_producer):
        mock_aiokafka_producer.send_and_wait.side_effect = KafkaTimeoutError()

        with pytest.raises(PublishError) as exc_info:
            await started_producer.publish("nodebb-images", "a.png", {"x": 1})

        assert exc_info.value.topic == "nodebb-images"
        assert isinstance(exc_info.value.cause, KafkaTimeoutError)

    @pytest.mark.asyncio
    async def test_publish_timeout_raises(self, mock_aiokafka_producer):
        config = BridgeConfig(publish_timeout_seconds=0.01)
        producer = MessageProducer(config)
        producer._producer = mock_aiokafka_producer
        producer._started = True

        async def never_acks(*args, **kwargs):
            await asyncio.sleep(10)

        mock_aiokafka_producer.send_and_wait.side_effect = never_acks

        with pytest.raises(PublishError, match="timed out"):
            await producer.publish("nodebb-posts", "1", {"post": {"pid": 1}})

    @pytest.mark.asyncio
    async def test_publish_unserializable_payload_raises(self, started_producer, mock_aiokafka_producer):
        payload = {"post": {"pid": 1}}
        payload["self"] = payload

        with pytest.raises(PublishError, match="serialize"):
            await started_producer.publish("nodebb-posts", "1", payload)

        mock_aiokafka_producer.send_and_wait.assert_not_called()
