"""redirectguard security utilities.

This package holds the building blocks of the open redirect guard:
- URL classification and locality checks
- Security event audit logging

Usage:
    from redirectguard.security import (
        external_is_local,
        is_external,
        SecurityEvent,
        log_security_event,
    )
"""

from redirectguard.security.audit import SecurityEvent, log_security_event
from redirectguard.security.redirect import (
    external_is_local,
    has_control_characters,
    is_external,
    is_relative_reference,
    parse_destination,
    strip_dangerous_protocols,
)

__all__ = [
    "external_is_local",
    "has_control_characters",
    "is_external",
    "is_relative_reference",
    "parse_destination",
    "strip_dangerous_protocols",
    "SecurityEvent",
    "log_security_event",
]
