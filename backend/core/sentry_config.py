"""
Sentry SDK configuration.

Sentry stays off unless SENTRY_DSN is set. Events are scrubbed of user
identity beyond the id, of credentials and of request bodies, which may
hold passwords or private messages.
"""

import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.loguru import LoguruIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.types import Event, Hint

_UNTRACED_PATHS = ("/api/health",)
# Security-relevant routes are traced more often
_PRIORITY_PREFIXES = ("/api/admin", "/api/auth", "/api/moderation")


def _before_send(event: Event, hint: Hint) -> Event | None:
    """
    Remove PII before an event leaves the process.

    Args:
        event: Sentry event.
        hint: Additional context about the event.

    Returns:
        The scrubbed event.
    """
    user = event.get("user")
    if user:
        user.pop("email", None)
        user.pop("username", None)
        user.pop("ip_address", None)

    request = event.get("request")
    if request and isinstance(request, dict):
        request.pop("cookies", None)
        request.pop("data", None)
        headers = request.get("headers")
        if isinstance(headers, dict):
            for name in list(headers):
                if name.lower() == "authorization":
                    headers[name] = "[Filtered]"

    return event


def _before_send_transaction(event: Event, hint: Hint) -> Event | None:
    transaction_name = str(event.get("transaction", ""))
    if any(transaction_name.endswith(path) for path in _UNTRACED_PATHS):
        return None
    return event


def _traces_sampler(sampling_context: dict[str, Any]) -> float:
    """Sample rate per request path."""
    if sampling_context.get("parent_sampled") is True:
        return 1.0

    path = sampling_context.get("asgi_scope", {}).get("path", "")
    if path in _UNTRACED_PATHS:
        return 0.0
    if path.startswith(_PRIORITY_PREFIXES):
        return 0.5
    return float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.2"))


def init_sentry() -> None:
    """
    Initialize Sentry SDK with FastAPI integration.

    Call this BEFORE creating the FastAPI app instance.
    """
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=os.getenv("ENVIRONMENT", "development"),
        release=os.getenv("SENTRY_RELEASE", "unknown"),
        send_default_pii=False,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoguruIntegration(),
        ],
        traces_sampler=_traces_sampler,
        sample_rate=1.0,
        before_send=_before_send,
        before_send_transaction=_before_send_transaction,
        attach_stacktrace=True,
        max_breadcrumbs=50,
    )
