"""
Upload outcome schemas.

Contains Pydantic models for:
- UploadResult: where a relocated image now lives
- Relocated / FellBackToLocal: the outcome of handling an upload event,
  both answering the host with ``{url, path, name}``
"""

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class UploadResult(BaseModel):
    """Location of an image relocated to the object store.

    Attributes:
        remote_url: Public URL clients fetch the image from
        storage_key: Key within the bucket, e.g. "avatars/<uuid>.png"
        generated_name: Unique file name, e.g. "<uuid>.png"
        bucket: Bucket the object was written to
        content_type: Content-Type stored with the object
        size_bytes: Number of bytes uploaded
    """

    remote_url: str = Field(..., min_length=1)
    storage_key: str = Field(..., min_length=1)
    generated_name: str = Field(..., min_length=1)
    bucket: str = Field(..., min_length=1)
    content_type: str
    size_bytes: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


class Relocated(BaseModel):
    """Image now served from the object store."""

    outcome: Literal["relocated"] = "relocated"
    upload: UploadResult
    original_name: str
    published: bool = Field(
        default=False, description="Whether the images topic acknowledged the message"
    )

    @property
    def url(self) -> str:
        return self.upload.remote_url

    def to_host(self) -> dict[str, str]:
        return {
            "url": self.upload.remote_url,
            "path": self.upload.storage_key,
            "name": self.original_name,
        }


class FellBackToLocal(BaseModel):
    """Relocation failed; the forum keeps serving the local file."""

    outcome: Literal["fallback"] = "fallback"
    reason: str
    local_path: str
    local_url: Optional[str] = None
    original_name: str

    @property
    def url(self) -> str:
        return self.local_url or self.local_path

    def to_host(self) -> dict[str, str]:
        return {
            "url": self.url,
            "path": self.local_path,
            "name": self.original_name,
        }


UploadOutcome = Union[Relocated, FellBackToLocal]


__all__ = [
    "FellBackToLocal",
    "Relocated",
    "UploadOutcome",
    "UploadResult",
]
