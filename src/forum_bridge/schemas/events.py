"""
Inbound hook payload schemas.

Two tagged event variants, validated at the boundary before any broker or
storage call:
- PostEvent: "post created" hook, ``{"post": {"pid": ..., ...}}``
- UploadEvent: "image uploaded" hook,
  ``{"image": {"path": ..., "name": ..., "url": ...}, "folder": ...}``

Unknown fields are kept so the full host payload reaches the broker.
"""

from typing import Any, ClassVar, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from core.errors.exceptions import EventValidationError


class PostBody(BaseModel):
    """The ``post`` object of a post-created payload."""

    pid: Union[int, str] = Field(..., description="Post identifier assigned by the forum")

    @field_validator("pid")
    @classmethod
    def validate_pid(cls, v: Union[int, str]) -> Union[int, str]:
        if isinstance(v, str) and not v.strip():
            raise ValueError("pid cannot be empty or whitespace")
        return v

    model_config = {"extra": "allow"}


class PostEvent(BaseModel):
    """Post created by a forum user.

    Example:
        >>> event = PostEvent.model_validate({"post": {"pid": 42, "content": "hi"}})
        >>> event.message_key
        '42'
    """

    kind: ClassVar[str] = "post"

    post: PostBody

    model_config = {"extra": "allow"}

    @property
    def message_key(self) -> str:
        return str(self.post.pid)

    def to_payload(self) -> dict[str, Any]:
        """The payload as received, as a JSON-compatible dict."""
        return self.model_dump(mode="json", exclude_unset=True)


class ImageDescriptor(BaseModel):
    """The ``image`` object of an image-uploaded payload."""

    path: str = Field(..., description="Local file path written by the forum", min_length=1)
    name: str = Field(..., description="Original file name from the client", min_length=1)
    url: Optional[str] = Field(default=None, description="Local URL the forum would serve")

    @field_validator("path", "name")
    @classmethod
    def validate_non_empty_strings(cls, v: str, info) -> str:
        """Ensure required string fields are not empty or whitespace-only."""
        if not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty or whitespace")
        return v

    model_config = {"extra": "allow"}


class UploadEvent(BaseModel):
    """Image uploaded to the forum's local disk."""

    kind: ClassVar[str] = "upload"

    image: ImageDescriptor
    folder: Optional[str] = Field(default=None, description="Optional folder, e.g. 'avatars'")

    model_config = {"extra": "allow"}

    def to_payload(self) -> dict[str, Any]:
        """The payload as received, as a JSON-compatible dict."""
        return self.model_dump(mode="json", exclude_unset=True)


def _parse(model: type[BaseModel], kind: str, data: Any) -> Any:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in e.errors(include_url=False, include_input=False)
        ]
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "<root>" for err in errors)
        raise EventValidationError(
            f"Invalid {kind} event: {fields}",
            event_kind=kind,
            errors=errors,
            cause=e,
        ) from e


def parse_post_event(data: Any) -> PostEvent:
    """Validate a raw post-created payload.

    Raises:
        EventValidationError: If the payload lacks ``post.pid`` or is not a mapping
    """
    return _parse(PostEvent, PostEvent.kind, data)


def parse_upload_event(data: Any) -> UploadEvent:
    """Validate a raw image-uploaded payload.

    Raises:
        EventValidationError: If ``image.path`` or ``image.name`` is missing
    """
    return _parse(UploadEvent, UploadEvent.kind, data)


__all__ = [
    "ImageDescriptor",
    "PostBody",
    "PostEvent",
    "UploadEvent",
    "parse_post_event",
    "parse_upload_event",
]
