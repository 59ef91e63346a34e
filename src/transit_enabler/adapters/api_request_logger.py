"""Detailed logging of outgoing backend requests, enabled by TE_LOG_REQUESTS."""

import json
import logging
import os
from typing import Any
from urllib.parse import urlencode

logger = logging.getLogger(__name__)

LOG_REQUESTS_ENV = "TE_LOG_REQUESTS"
REDACTED = "***REDACTED***"
SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "x-api-key", "proxy-authorization"})
SENSITIVE_PARAMS = frozenset({"key", "apikey", "api_key", "token", "accesstoken"})


def should_log_requests() -> bool:
    return os.getenv(LOG_REQUESTS_ENV, "").lower() == "true"


def _redact(mapping: dict[str, Any], sensitive: frozenset[str]) -> dict[str, Any]:
    return {k: REDACTED if k.lower() in sensitive else v for k, v in mapping.items()}


def build_logged_url(url: str, params: dict[str, Any] | None) -> str:
    """Append sorted, redacted query parameters to ``url``."""
    if not params:
        return url
    query = urlencode(sorted(_redact(params, SENSITIVE_PARAMS).items()))
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


def _format_payload(payload: Any) -> str:
    if isinstance(payload, (dict, list)):
        try:
            return json.dumps(payload, indent=2, default=str)
        except (TypeError, ValueError):
            pass
    return str(payload)


def log_api_request(
    method: str,
    url: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    payload: Any = None,
) -> None:
    """Log an outgoing request with secrets redacted, if enabled.

    Args:
        method: HTTP method.
        url: Request URL without query string.
        params: Query parameters.
        headers: Request headers; credentials are redacted.
        payload: Request body.
    """
    if not should_log_requests():
        return

    lines = [f"{method} {build_logged_url(url, params)}"]
    if headers:
        lines.append(f"Headers: {json.dumps(_redact(headers, SENSITIVE_HEADERS), indent=2)}")
    if payload is not None:
        lines.append(f"Payload: {_format_payload(payload)}")
    logger.info("Backend request:\n" + "\n".join(lines))
