"""File extension to Content-Type mapping for uploaded images."""

from pathlib import PurePath

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".bmp": "image/bmp",
    ".ico": "image/x-icon",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".avif": "image/avif",
}


def content_type_for(filename: str) -> str:
    """
    Content-Type for a file name or storage key, by extension.

    Case-insensitive. Unknown or missing extensions map to
    application/octet-stream.
    """
    return CONTENT_TYPES.get(PurePath(filename).suffix.lower(), DEFAULT_CONTENT_TYPE)


__all__ = ["CONTENT_TYPES", "DEFAULT_CONTENT_TYPE", "content_type_for"]
