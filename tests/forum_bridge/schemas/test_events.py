"""Tests for hook payload schemas."""

import pytest

from core.errors.exceptions import EventValidationError
from forum_bridge.schemas.events import (
    PostEvent,
    UploadEvent,
    parse_post_event,
    parse_upload_event,
)


class TestPostEvent:
    def test_int_pid_key(self):
        event = parse_post_event({"post": {"pid": 42}})
        assert event.message_key == "42"

    def test_str_pid_key(self):
        event = parse_post_event({"post": {"pid": "abc"}})
        assert event.message_key == "abc"

    def test_extra_fields_kept_in_payload(self):
        raw = {"post": {"pid": 7, "content": "hello", "tid": 3}, "caller": {"uid": 1}}
        assert parse_post_event(raw).to_payload() == raw

    def test_kind_not_in_payload(self):
        event = parse_post_event({"post": {"pid": 1}})
        assert PostEvent.kind == "post"
        assert "kind" not in event.to_payload()

    def test_missing_pid_rejected(self):
        with pytest.raises(EventValidationError) as exc_info:
            parse_post_event({"post": {"content": "no id"}})

        error = exc_info.value
        assert error.event_kind == "post"
        assert error.errors[0]["loc"] == ["post", "pid"]
        assert "post.pid" in error.message

    def test_blank_pid_rejected(self):
        with pytest.raises(EventValidationError):
            parse_post_event({"post": {"pid": "  "}})

    @pytest.mark.parametrize("raw", [None, [], "post", {}])
    def test_non_mapping_or_empty_rejected(self, raw):
        with pytest.raises(EventValidationError):
            parse_post_event(raw)

    def test_model_instance_passes_through(self):
        event = PostEvent.model_validate({"post": {"pid": 1}})
        assert parse_post_event(event) is event


class TestUploadEvent:
    def test_required_fields(self):
        event = parse_upload_event(
            {"image": {"path": "/tmp/a.png", "name": "a.png", "url": "/uploads/a.png"}, "folder": "avatars"}
        )

        assert event.image.path == "/tmp/a.png"
        assert event.image.name == "a.png"
        assert event.folder == "avatars"
        assert UploadEvent.kind == "upload"

    def test_payload_unchanged_when_optional_fields_absent(self):
        raw = {"image": {"path": "/tmp/a.png", "name": "a.png", "size": 10}, "uid": 5}
        assert parse_upload_event(raw).to_payload() == raw

    @pytest.mark.parametrize(
        "image",
        [
            {"name": "a.png"},
            {"path": "/tmp/a.png"},
            {"path": "", "name": "a.png"},
            {"path": "/tmp/a.png", "name": "   "},
        ],
    )
    def test_missing_path_or_name_rejected(self, image):
        with pytest.raises(EventValidationError) as exc_info:
            parse_upload_event({"image": image})

        assert exc_info.value.event_kind == "upload"

    def test_missing_image_rejected(self):
        with pytest.raises(EventValidationError, match="image"):
            parse_upload_event({"folder": "avatars"})
