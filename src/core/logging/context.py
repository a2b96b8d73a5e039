"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_stage_name: ContextVar[str] = ContextVar("stage_name", default="")
_worker_id: ContextVar[str] = ContextVar("worker_id", default="")
_event_kind: ContextVar[str] = ContextVar("event_kind", default="")
_trace_id: ContextVar[str] = ContextVar("trace_id", default="")


def set_log_context(
    stage: Optional[str] = None,
    worker_id: Optional[str] = None,
    event_kind: Optional[str] = None,
    trace_id: Optional[str] = None,
) -> None:
    if stage is not None:
        _stage_name.set(stage)
    if worker_id is not None:
        _worker_id.set(worker_id)
    if event_kind is not None:
        _event_kind.set(event_kind)
    if trace_id is not None:
        _trace_id.set(trace_id)


def get_log_context() -> Dict[str, str]:
    return {
        "stage": _stage_name.get(),
        "worker_id": _worker_id.get(),
        "event_kind": _event_kind.get(),
        "trace_id": _trace_id.get(),
    }


def clear_log_context() -> None:
    _stage_name.set("")
    _worker_id.set("")
    _event_kind.set("")
    _trace_id.set("")
