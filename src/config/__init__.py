"""Configuration loading for the forum bridge.

Main Functions
--------------
    - load_config(): Load and validate configuration

Usage
-----
    >>> from config import load_config
    >>> config = load_config(settings={"s3_bucket": "forum-images"})
    >>> config.posts_topic
    'nodebb-posts'
"""

from config.config import (
    DEFAULT_CONFIG_FILE,
    FIELD_ENV_VARS,
    BridgeConfig,
    load_config,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "FIELD_ENV_VARS",
    "BridgeConfig",
    "load_config",
]
