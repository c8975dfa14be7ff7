"""
Request-scoped correlation IDs.

The ID travels in the `X-Correlation-ID` header, is attached to every log
record and to error response bodies, so a user report can be matched to logs.
"""

import uuid
from contextvars import ContextVar

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """Return 8 hex characters, e.g. "abc123de"."""
    return uuid.uuid4().hex[:8]


def get_correlation_id() -> str:
    """Correlation ID of the current request, or "" outside a request."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    # Client-supplied IDs are trimmed so they cannot flood log lines
    correlation_id_var.set(correlation_id[:64])
