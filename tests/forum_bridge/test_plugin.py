"""Tests for the ForumBridge context object."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from core.errors.exceptions import InitializationError, UploadError
from forum_bridge.common.producer import MessageProducer
from forum_bridge.common.storage import ObjectStoreClient
from forum_bridge.common.types import ProduceResult
from forum_bridge.plugin import ForumBridge


@pytest.fixture
def mock_producer():
    producer = MagicMock(spec=MessageProducer)
    producer.connect = AsyncMock()
    producer.stop = AsyncMock()
    producer.publish = AsyncMock(return_value=ProduceResult("nodebb-posts", 0, 5))
    producer.is_connected = True
    return producer


@pytest.fixture
def mock_store():
    store = MagicMock(spec=ObjectStoreClient)
    store.ensure_bucket = AsyncMock(return_value=False)
    store.close = AsyncMock()
    return store


@pytest.fixture
def bridge(bridge_config, mock_producer, mock_store):
    return ForumBridge(bridge_config, mock_producer, mock_store)


class TestConstruction:
    def test_from_config_builds_clients(self, bridge_config):
        with patch("forum_bridge.plugin.MessageProducer") as producer_cls, patch(
            "forum_bridge.plugin.ObjectStoreClient"
        ) as store_cls:
            bridge = ForumBridge.from_config(bridge_config)

        producer_cls.assert_called_once_with(bridge_config)
        store_cls.assert_called_once_with(bridge_config)
        assert bridge.forwarder.producer is producer_cls.return_value
        assert bridge.relocator.store is store_cls.return_value

    def test_handlers_share_clients(self, bridge, mock_producer, mock_store):
        assert bridge.forwarder.relocator is bridge.relocator
        assert bridge.forwarder.producer is mock_producer
        assert bridge.relocator.store is mock_store


class TestStart:
    @pytest.mark.asyncio
    async def test_start_connects_and_checks_bucket(self, bridge, mock_producer, mock_store):
        await bridge.start()

        mock_producer.connect.assert_awaited_once()
        mock_store.ensure_bucket.assert_awaited_once()
        assert bridge.bucket_ready is True

    @pytest.mark.asyncio
    async def test_broker_failure_aborts_start(self, bridge, mock_producer, mock_store):
        mock_producer.connect.side_effect = InitializationError("no broker")

        with pytest.raises(InitializationError):
            await bridge.start()

        mock_store.ensure_bucket.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bucket_failure_does_not_abort_start(self, bridge, mock_store):
        mock_store.ensure_bucket.side_effect = UploadError("access denied")

        await bridge.start()

        assert bridge.bucket_ready is False

    def test_bucket_unknown_before_start(self, bridge):
        assert bridge.bucket_ready is None


class TestStop:
    @pytest.mark.asyncio
    async def test_stop_closes_clients(self, bridge, mock_producer, mock_store):
        await bridge.stop()

        mock_producer.stop.assert_awaited_once()
        mock_store.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_store_close_error_logged(self, bridge, mock_store):
        mock_store.close.side_effect = RuntimeError("pool gone")
        await bridge.stop()


class TestHandlers:
    @pytest.mark.asyncio
    async def test_handle_post_delegates(self, bridge, mock_producer):
        result = await bridge.handle_post({"post": {"pid": 3}})

        assert result.offset == 5
        mock_producer.publish.assert_awaited_once_with("nodebb-posts", "3", {"post": {"pid": 3}})

    @pytest.mark.asyncio
    async def test_handle_upload_delegates(self, bridge):
        bridge.forwarder.on_upload = AsyncMock(return_value="outcome")

        assert await bridge.handle_upload({"image": {}}) == "outcome"
        bridge.forwarder.on_upload.assert_awaited_once_with({"image": {}})

    def test_is_ready_follows_producer(self, bridge, mock_producer):
        mock_producer.is_connected = False
        assert bridge.is_ready is False
