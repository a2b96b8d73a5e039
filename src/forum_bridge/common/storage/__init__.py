"""Object storage for relocated uploads."""

from forum_bridge.common.storage.content_types import (
    CONTENT_TYPES,
    DEFAULT_CONTENT_TYPE,
    content_type_for,
)
from forum_bridge.common.storage.object_store import (
    ObjectStoreClient,
    StoredObject,
    create_s3_client,
)

__all__ = [
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
    "content_type_for",
    "ObjectStoreClient",
    "StoredObject",
    "create_s3_client",
]
