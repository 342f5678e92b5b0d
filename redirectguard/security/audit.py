"""Security event audit logging for redirectguard.

Rejected redirects and sanitized destinations are logged so that open
redirect probing can be audited.

Security considerations:
- Only the raw destination, hosts and path are logged; never request bodies,
  cookies or unrelated headers
- Logging is best-effort: a failing handler must never change the redirect
  decision or fail the request
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

# Security logger - configure handler in application
security_logger = logging.getLogger("redirectguard.security")

# Reports failures of the audit sink itself.
logger = logging.getLogger(__name__)


class SecurityEvent(Enum):
    """Security event types for audit logging."""

    INVALID_REDIRECT = "invalid_redirect"
    DESTINATION_SANITIZED = "destination_sanitized"


def log_security_event(
    event: SecurityEvent,
    *,
    logger: logging.Logger | None = None,
    host: str | None = None,
    path: str | None = None,
    ip_address: str | None = None,
    success: bool = True,
    details: dict[str, Any] | None = None,
) -> None:
    """Log a security event.

    Args:
        event: The type of security event
        logger: Logger to write to (default: `redirectguard.security`)
        host: Host header of the request
        path: Request path (if applicable)
        ip_address: Client IP address
        success: Whether the event represents an allowed action
        details: Additional event-specific details

    Examples:
        log_security_event(
            SecurityEvent.INVALID_REDIRECT,
            host="example.com",
            success=False,
            details={"destination": "//evil.com", "reason": "cross_origin"},
        )
    """
    log = logger or security_logger

    log_data: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event.value,
        "success": success,
    }
    message_parts = [f"event={event.value}"]

    if host:
        log_data["host"] = host
        message_parts.append(f"host={host}")
    if ip_address:
        log_data["ip_address"] = ip_address
        message_parts.append(f"ip={ip_address}")
    if path:
        log_data["path"] = path
        message_parts.append(f"path={path}")
    if not success:
        message_parts.append("success=false")
    if details:
        log_data["details"] = details
        for key, value in details.items():
            # repr() keeps control characters in hostile input from forging lines.
            message_parts.append(f"{key}={value!r}")

    message = " ".join(message_parts)
    level = logging.WARNING if not success else logging.INFO

    try:
        log.log(level, message, extra={"security_data": log_data})
    except Exception:
        # Logging must not turn a decided response into a server error.
        _report_sink_failure(log, event)


def _report_sink_failure(log: logging.Logger, event: SecurityEvent) -> None:
    if log is logger:
        return
    try:
        logger.debug(
            "Audit sink %s failed for event=%s", log.name, event.value, exc_info=True
        )
    except Exception:
        pass
