"""Pydantic schemas for hook payloads and upload outcomes."""

from forum_bridge.schemas.events import (
    ImageDescriptor,
    PostBody,
    PostEvent,
    UploadEvent,
    parse_post_event,
    parse_upload_event,
)
from forum_bridge.schemas.results import (
    FellBackToLocal,
    Relocated,
    UploadOutcome,
    UploadResult,
)

__all__ = [
    "ImageDescriptor",
    "PostBody",
    "PostEvent",
    "UploadEvent",
    "parse_post_event",
    "parse_upload_event",
    "FellBackToLocal",
    "Relocated",
    "UploadOutcome",
    "UploadResult",
]
