"""Shared broker and storage infrastructure for the bridge."""

from forum_bridge.common.producer import MessageProducer
from forum_bridge.common.types import ProduceResult

__all__ = ["MessageProducer", "ProduceResult"]
