"""Tests for logging context variables."""

import asyncio

import pytest

from core.logging.context import clear_log_context, get_log_context, set_log_context


@pytest.fixture(autouse=True)
def clear_context():
    clear_log_context()
    yield
    clear_log_context()


class TestLogContext:
    def test_defaults_are_empty(self):
        assert get_log_context() == {
            "stage": "",
            "worker_id": "",
            "event_kind": "",
            "trace_id": "",
        }

    def test_set_only_updates_given_fields(self):
        set_log_context(stage="bridge")
        set_log_context(trace_id="t-1")

        context = get_log_context()
        assert context["stage"] == "bridge"
        assert context["trace_id"] == "t-1"

    def test_clear_resets_fields(self):
        set_log_context(stage="bridge", event_kind="post")
        clear_log_context()
        assert get_log_context()["event_kind"] == ""

    @pytest.mark.asyncio
    async def test_context_isolated_between_tasks(self):
        async def handle(kind):
            set_log_context(event_kind=kind)
            await asyncio.sleep(0)
            return get_log_context()["event_kind"]

        results = await asyncio.gather(handle("post"), handle("upload"))

        assert results == ["post", "upload"]
        assert get_log_context()["event_kind"] == ""
