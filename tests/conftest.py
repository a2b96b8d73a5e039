"""
pytest configuration for forum bridge tests.

Adds src directory to Python path for imports and provides shared fixtures.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from config.config import BridgeConfig  # noqa: E402


@pytest.fixture
def bridge_config():
    """Bridge configuration pointing at local test endpoints."""
    return BridgeConfig(
        client_id="test-bridge",
        bootstrap_servers="localhost:9092",
        posts_topic="nodebb-posts",
        images_topic="nodebb-images",
        s3_endpoint="http://minio:9000",
        s3_public_endpoint="https://cdn.example.com/storage",
        s3_access_key_id="test-key",
        s3_secret_access_key="test-secret",
        s3_bucket="forum-uploads",
        s3_region="us-east-1",
        publish_timeout_seconds=5.0,
        upload_timeout_seconds=5.0,
    )


@pytest.fixture
def mock_aiokafka_producer():
    """Create mock AIOKafkaProducer."""
    producer = MagicMock()
    producer.start = AsyncMock()
    producer.stop = AsyncMock()
    producer.flush = AsyncMock()
    producer.send_and_wait = AsyncMock()
    return producer


@pytest.fixture
def mock_s3_client():
    """Create mock boto3 S3 client; bucket exists and puts succeed by default."""
    client = MagicMock()
    client.head_bucket.return_value = {}
    client.create_bucket.return_value = {}
    client.put_object.return_value = {"ETag": '"abc123"'}
    return client
