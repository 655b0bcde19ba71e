"""Context variables for structured logging."""

import secrets
from contextvars import ContextVar
from typing import Dict, Optional

_coordinator: ContextVar[str] = ContextVar("coordinator", default="")
_refresh_id: ContextVar[str] = ContextVar("refresh_id", default="")
_trace_id: ContextVar[str] = ContextVar("trace_id", default="")


def set_log_context(
    coordinator: Optional[str] = None,
    refresh_id: Optional[str] = None,
    trace_id: Optional[str] = None,
) -> None:
    if coordinator is not None:
        _coordinator.set(coordinator)
    if refresh_id is not None:
        _refresh_id.set(refresh_id)
    if trace_id is not None:
        _trace_id.set(trace_id)


def get_log_context() -> Dict[str, str]:
    return {
        "coordinator": _coordinator.get(),
        "refresh_id": _refresh_id.get(),
        "trace_id": _trace_id.get(),
    }


def clear_log_context() -> None:
    _coordinator.set("")
    _refresh_id.set("")
    _trace_id.set("")


def generate_refresh_id() -> str:
    """Short random id correlating the records of one refresh cycle."""
    return secrets.token_hex(4)
