"""Tests for the shared JSON serializer."""

import json
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from uuid import UUID

from core.types import ErrorCategory
from core.utils.json_serializers import json_serializer


class TestJsonSerializer:
    def test_datetime_iso(self):
        value = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert json_serializer(value) == "2026-01-02T03:04:05+00:00"

    def test_decimal_stays_numeric(self):
        assert json_serializer(Decimal("1.5")) == 1.5

    def test_path_and_uuid(self):
        uid = UUID("12345678-1234-5678-1234-567812345678")
        assert json_serializer(Path("/tmp/a.png")) == "/tmp/a.png"
        assert json_serializer(uid) == str(uid)

    def test_bytes_decoded(self):
        assert json_serializer(b"abc") == "abc"

    def test_enum_value(self):
        assert json_serializer(ErrorCategory.TRANSIENT) == "transient"

    def test_used_as_default_hook(self):
        payload = {"at": datetime(2026, 1, 1), "size": Decimal("2")}
        assert json.loads(json.dumps(payload, default=json_serializer)) == {
            "at": "2026-01-01T00:00:00",
            "size": 2.0,
        }
