"""Utility for logging outgoing trip queries when HAFAS_LOG_REQUESTS is enabled."""

import logging
import os
from typing import Any

from yarl import URL

logger = logging.getLogger(__name__)


def should_log_requests() -> bool:
    """Check if request logging is enabled via HAFAS_LOG_REQUESTS environment variable."""
    return os.getenv("HAFAS_LOG_REQUESTS", "").lower() == "true"


def build_url_with_params(url: str, params: dict[str, Any] | None) -> str:
    """Build full URL with percent-encoded query parameters, keeping their given order."""
    if not params:
        return url
    return str(URL(url).update_query(params))


def _redact_sensitive_headers(headers: dict[str, str]) -> dict[str, str]:
    sensitive_keys = {"authorization", "cookie", "x-api-key"}
    return {k: "***REDACTED***" if k.lower() in sensitive_keys else v for k, v in headers.items()}


def log_api_request(
    method: str,
    url: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> None:
    """Log request details if HAFAS_LOG_REQUESTS is enabled.

    Args:
        method: HTTP method.
        url: Request URL.
        params: Query parameters (optional).
        headers: Request headers (optional, sensitive headers are redacted).
    """
    if not should_log_requests():
        return

    log_parts = [f"{method} {build_url_with_params(url, params)}"]
    if headers:
        safe_headers = _redact_sensitive_headers(headers)
        log_parts.append("Headers: " + ", ".join(f"{k}: {v}" for k, v in safe_headers.items()))

    logger.info("API Request:\n" + "\n".join(log_parts))


def log_api_response(url: str, status: int, body_size: int) -> None:
    """Log response status and raw body size if HAFAS_LOG_REQUESTS is enabled."""
    if not should_log_requests():
        return
    logger.info(f"API Response: {status} for {url} ({body_size} bytes)")
