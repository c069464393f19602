# =============================================================================
# Sentry Error Tracking Integration
# =============================================================================
#
# Setup:
#   1. Create a Python project at sentry.io
#   2. Copy DSN to .env: SENTRY_DSN=https://...@sentry.io/...
#
# Usage:
#   init_sentry() is called at API and worker startup.
#
# =============================================================================

import logging

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from babelpost.config import get_settings

logger = logging.getLogger(__name__)

# Expected outcomes of the translate endpoint, not bugs
IGNORED_STATUS_CODES = (401, 403, 404, 413, 422, 429)


def init_sentry() -> bool:
    """
    Initialize Sentry error tracking.
    
    Returns True if initialized, False if skipped.
    """
    settings = get_settings()
    
    if not settings.sentry_dsn:
        logger.info("SENTRY_DSN not set - error tracking disabled")
        return False
    
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            StarletteIntegration(transaction_style="endpoint"),
            LoggingIntegration(
                level=logging.INFO,
                event_level=logging.ERROR,
            ),
        ],
        # Provider keys travel in headers and query strings
        send_default_pii=False,
        before_send=_filter_events,
        before_send_transaction=_filter_transactions,
    )
    
    logger.info(f"Sentry initialized for {settings.environment}")
    return True


def _filter_events(event: dict, hint: dict) -> dict | None:
    """Filter out expected errors and scrub credentials."""
    if "exc_info" in hint:
        _, exc_value, _ = hint["exc_info"]
        
        from babelpost.core.errors import TranslatorError
        from fastapi import HTTPException
        
        status = getattr(exc_value, "status_code", None)
        if isinstance(exc_value, (HTTPException, TranslatorError)) and status in IGNORED_STATUS_CODES:
            return None
    
    request = event.get("request")
    if request:
        headers = request.get("headers", {})
        for key in list(headers.keys()):
            if key.lower() in ("authorization", "cookie", "ocp-apim-subscription-key"):
                headers[key] = "[Filtered]"
        if "key=" in str(request.get("query_string", "")):
            request["query_string"] = "[Filtered]"
    
    return event


def _filter_transactions(event: dict, hint: dict) -> dict | None:
    """Skip health checks."""
    if event.get("transaction", "") in ("/health", "/healthz", "/ready"):
        return None
    return event


def capture_exception(error: Exception, **context) -> str | None:
    """
    Capture an exception to Sentry.
    
    Returns the event ID if captured, None otherwise.
    """
    if not sentry_sdk.is_initialized():
        logger.error("Error (Sentry disabled)", exc_info=error)
        return None
    
    with sentry_sdk.new_scope() as scope:
        for key, value in context.items():
            scope.set_extra(key, value)
        return sentry_sdk.capture_exception(error)


def set_tag(key: str, value: str) -> None:
    """Add a tag for filtering in Sentry."""
    if sentry_sdk.is_initialized():
        sentry_sdk.set_tag(key, value)
