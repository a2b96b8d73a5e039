"""
Forum bridge: forwards forum events to Kafka and relocates image uploads
to S3-compatible object storage.

Usage
-----
    >>> from config import load_config
    >>> from forum_bridge import ForumBridge
    >>> bridge = ForumBridge.from_config(load_config())
    >>> await bridge.start()
"""

from forum_bridge.plugin import ForumBridge

__version__ = "0.1.0"

__all__ = ["ForumBridge", "__version__"]
