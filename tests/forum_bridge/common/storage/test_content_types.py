"""Tests for extension to Content-Type mapping."""

import pytest

from forum_bridge.common.storage.content_types import DEFAULT_CONTENT_TYPE, content_type_for


class TestContentTypeFor:
    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("a.png", "image/png"),
            ("a.jpg", "image/jpeg"),
            ("a.jpeg", "image/jpeg"),
            ("a.gif", "image/gif"),
            ("a.webp", "image/webp"),
            ("a.svg", "image/svg+xml"),
            ("a.bmp", "image/bmp"),
            ("a.ico", "image/x-icon"),
            ("a.tif", "image/tiff"),
            ("a.tiff", "image/tiff"),
            ("a.avif", "image/avif"),
        ],
    )
    def test_known_extensions(self, filename, expected):
        assert content_type_for(filename) == expected

    def test_unknown_extension_is_binary(self):
        assert content_type_for("a.xyz") == "application/octet-stream"

    def test_no_extension_is_binary(self):
        assert content_type_for("README") == DEFAULT_CONTENT_TYPE

    def test_case_insensitive(self):
        assert content_type_for("PHOTO.JPG") == "image/jpeg"

    def test_uses_last_extension_of_storage_key(self):
        assert content_type_for("avatars/archive.tar.png") == "image/png"
